"""Authentication and administrator endpoints."""

import logging
from typing import Any, Dict, Optional

from ..client import SchoolReportClient
from ..utils import clean_filters
from ..validation import validate_change_password, validate_signup
from .base import call

_LOGGER = logging.getLogger(__name__)


def _masked(data: Dict[str, Any]) -> Dict[str, Any]:
	return {key: ("***" if "password" in key.lower() else value) for key, value in data.items()}


async def signin(client: SchoolReportClient, credentials: Dict[str, Any]) -> Any:
	"""Sign in and keep the returned token and user in the client's session store."""
	_LOGGER.debug(f"Credentials being sent: {_masked(credentials)}")
	data = await call(client, _LOGGER, "POST", "/auth/signin", "signin", json_body=credentials, log_body=False)
	if isinstance(data, dict):
		token = data.get("token") or data.get("accessToken")
		if token:
			client.store.token = token
			client.store.user = data.get("user")
			user = data.get("user") or {}
			_LOGGER.info(f"Signed in as {user.get('email', 'unknown user')}")
		else:
			_LOGGER.warning("Signin response carried no token")
	return data


def signout(client: SchoolReportClient) -> None:
	"""Forget the stored session. There is no server-side logout endpoint."""
	client.store.clear()


async def signup(client: SchoolReportClient, user_data: Dict[str, Any]) -> Any:
	"""Register a user. The form is validated before anything is sent."""
	validate_signup(user_data)
	_LOGGER.debug(f"User data being sent: {_masked(user_data)}")
	return await call(client, _LOGGER, "POST", "/auth/signup", "signup", json_body=user_data, log_body=False)


async def change_password(client: SchoolReportClient, change_password_data: Dict[str, Any]) -> Any:
	validate_change_password(change_password_data)
	return await call(
		client,
		_LOGGER,
		"PUT",
		"/auth/change-password",
		"change password",
		json_body=change_password_data,
		log_body=False,
	)


async def create_admin(client: SchoolReportClient, admin_data: Dict[str, Any]) -> Any:
	_LOGGER.debug(f"Admin data being sent: {_masked(admin_data)}")
	return await call(
		client, _LOGGER, "POST", "/auth/create-admin", "create admin", json_body=admin_data, log_body=False
	)


# Admin dashboard

async def get_admin_dashboard(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/admin/dashboard", "admin dashboard")


async def get_all_classes_admin(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/admin/classes", "get all classes admin")


async def get_class_details_admin(client: SchoolReportClient, class_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/admin/classes/{class_id}", "get class details admin")


async def get_class_students_admin(client: SchoolReportClient, class_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/admin/classes/{class_id}/students", "get class students admin")


async def get_class_attendance_admin(client: SchoolReportClient, class_id: str, date: Optional[str] = None) -> Any:
	return await call(
		client,
		_LOGGER,
		"GET",
		f"/admin/classes/{class_id}/attendance",
		"get class attendance admin",
		params=clean_filters({"date": date}),
	)


async def get_all_students_admin(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/admin/students", "get all students admin")


async def get_student_details_admin(client: SchoolReportClient, student_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/admin/students/{student_id}", "get student details admin")


async def get_student_attendance_admin(client: SchoolReportClient, student_id: str) -> Any:
	return await call(
		client, _LOGGER, "GET", f"/admin/students/{student_id}/attendance", "get student attendance admin"
	)


async def get_all_attendance_admin(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/admin/attendance", "get all attendance admin")


async def get_attendance_stats_admin(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/admin/attendance/stats", "get attendance stats admin")


async def get_attendance_by_date_admin(client: SchoolReportClient, date: str) -> Any:
	return await call(
		client, _LOGGER, "GET", "/admin/attendance/by-date", "get attendance by date admin", params={"date": date}
	)


async def get_all_users_admin(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/admin/users", "get all users admin")


async def get_user_details_admin(client: SchoolReportClient, user_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/admin/users/{user_id}", "get user details admin")


# Admin analytics and reports

async def get_analytics_overview_admin(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/admin/analytics/overview", "analytics overview admin")


async def get_class_performance_analytics_admin(client: SchoolReportClient) -> Any:
	return await call(
		client, _LOGGER, "GET", "/admin/analytics/class-performance", "class performance analytics admin"
	)


async def get_attendance_trends_analytics_admin(client: SchoolReportClient, start_date: str, end_date: str) -> Any:
	return await call(
		client,
		_LOGGER,
		"GET",
		"/admin/analytics/attendance-trends",
		"attendance trends analytics admin",
		params={"startDate": start_date, "endDate": end_date},
	)


async def get_attendance_report_admin(
	client: SchoolReportClient, start_date: str, end_date: str, class_id: Optional[str] = None
) -> Any:
	return await call(
		client,
		_LOGGER,
		"GET",
		"/admin/reports/attendance",
		"attendance report admin",
		params=clean_filters({"startDate": start_date, "endDate": end_date, "classId": class_id}),
	)


async def get_class_performance_report_admin(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/admin/reports/class-performance", "class performance report admin")


async def get_student_performance_report_admin(client: SchoolReportClient) -> Any:
	return await call(
		client, _LOGGER, "GET", "/admin/reports/student-performance", "student performance report admin"
	)
