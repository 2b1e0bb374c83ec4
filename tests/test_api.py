#!/usr/bin/env python3
"""Resource API modules: paths, cleaned params and request bodies."""

import pytest

from schoolreport.api import attendance, auth, comments, marks, reports, school
from schoolreport.client import Download
from schoolreport.exceptions import SchoolReportAPIError, SchoolReportAuthError, SchoolReportValidationError

from conftest import CLASS_ID, SCHOOL_ID, STUDENT_IDS, TEACHER_ID


async def test_attendance_filters_drop_empty_values(mock_client):
	mock_client.request.return_value = []
	await attendance.get_attendance_records(mock_client, {"classId": "", "date": None, "status": "present"})
	mock_client.request.assert_awaited_once_with(
		"GET", "/attendance", params={"status": "present"}, json_body=None
	)


async def test_marks_filters_are_trimmed(mock_client):
	await marks.get_marks(mock_client, {"academicYear": " 2024-2025 ", "examType": "  ", "classId": ""})
	mock_client.request.assert_awaited_once_with(
		"GET", "/marks", params={"academicYear": "2024-2025"}, json_body=None
	)


async def test_bulk_attendance_is_wrapped_in_records(mock_client):
	rows = [{"studentId": "s1", "status": "present"}]
	await attendance.create_bulk_attendance(mock_client, rows)
	mock_client.request.assert_awaited_once_with(
		"POST", "/attendance/bulk", params=None, json_body={"records": rows}
	)


async def test_bulk_marks_body_is_bare_array(mock_client):
	mark = {
		"studentId": STUDENT_IDS[0],
		"subjectId": CLASS_ID,
		"teacherId": TEACHER_ID,
		"classId": CLASS_ID,
		"schoolId": SCHOOL_ID,
		"totalMarks": 70,
	}
	await marks.create_bulk_marks(mock_client, [mark])
	mock_client.request.assert_awaited_once_with("POST", "/marks/bulk", params=None, json_body=[mark])


async def test_bulk_marks_validation_happens_before_sending(mock_client):
	with pytest.raises(SchoolReportValidationError):
		await marks.create_bulk_marks(mock_client, [{"studentId": STUDENT_IDS[0]}])
	mock_client.request.assert_not_awaited()


async def test_attendance_by_class_sends_date_only_when_given(mock_client):
	await attendance.get_attendance_by_class(mock_client, "c1")
	mock_client.request.assert_awaited_with("GET", "/attendance/class/c1", params={}, json_body=None)
	await attendance.get_attendance_by_class(mock_client, "c1", "2024-09-02")
	mock_client.request.assert_awaited_with(
		"GET", "/attendance/class/c1", params={"date": "2024-09-02"}, json_body=None
	)


async def test_errors_propagate_unchanged(mock_client):
	error = SchoolReportAPIError("nope", status=404)
	mock_client.request.side_effect = error
	with pytest.raises(SchoolReportAPIError) as exc:
		await marks.get_mark_by_id(mock_client, "m1")
	assert exc.value is error


async def test_signin_stores_token_and_user(mock_client):
	mock_client.request.return_value = {"token": "jwt", "user": {"_id": "u1", "email": "a@b.c", "role": "admin"}}
	await auth.signin(mock_client, {"email": "a@b.c", "password": "secret"})
	assert mock_client.store.token == "jwt"
	assert mock_client.store.is_admin()
	auth.signout(mock_client)
	assert not mock_client.store.is_authenticated()


async def test_signin_accepts_access_token_key(mock_client):
	mock_client.request.return_value = {"accessToken": "jwt2", "user": {"_id": "u2"}}
	await auth.signin(mock_client, {"email": "a@b.c", "password": "secret"})
	assert mock_client.store.token == "jwt2"


async def test_create_school_permission_failure_has_admin_message(mock_client):
	mock_client.request.side_effect = SchoolReportAPIError("Forbidden", status=403)
	with pytest.raises(SchoolReportAuthError) as exc:
		await school.create_my_school(mock_client, {"name": "North"})
	assert str(exc.value) == school.ADMIN_ONLY_MESSAGE
	assert exc.value.status == 403


async def test_export_attendance_report_requests_file(mock_client):
	mock_client.download.return_value = Download(content=b"PK", filename="attendance_report.xlsx")
	result = await reports.export_attendance_report(mock_client, {"classId": "c1", "startDate": ""})
	assert result.filename == "attendance_report.xlsx"
	mock_client.download.assert_awaited_once_with(
		"/reports/attendance", params={"classId": "c1", "export": True}, default_name="attendance_report"
	)


async def test_admin_attendance_report_passes_class(mock_client):
	await auth.get_attendance_report_admin(mock_client, "2024-09-01", "2024-09-30", "c1")
	args, kwargs = mock_client.request.await_args
	assert args == ("GET", "/admin/reports/attendance")
	assert kwargs["params"]["classId"] == "c1"


async def test_signup_with_mismatched_confirmation_sends_nothing(mock_client):
	with pytest.raises(SchoolReportValidationError) as exc:
		await auth.signup(
			mock_client,
			{"username": "ada", "email": "ada@example.com", "password": "secret1", "confirmPassword": "secret2"},
		)
	assert exc.value.field == "confirmPassword"
	mock_client.request.assert_not_awaited()


async def test_signup_with_invalid_email_sends_nothing(mock_client):
	with pytest.raises(SchoolReportValidationError):
		await auth.signup(mock_client, {"username": "ada", "email": "ada", "password": "secret1"})
	mock_client.request.assert_not_awaited()


async def test_change_password_mismatch_sends_nothing(mock_client):
	data = {"oldPassword": "secret1", "newPassword": "secret2", "confirmPassword": "secret3"}
	with pytest.raises(SchoolReportValidationError) as exc:
		await auth.change_password(mock_client, data)
	assert str(exc.value) == "New password and confirm password do not match"
	mock_client.request.assert_not_awaited()


async def test_change_password_sends_valid_form(mock_client):
	data = {"oldPassword": "secret1", "newPassword": "secret2", "confirmPassword": "secret2"}
	await auth.change_password(mock_client, data)
	mock_client.request.assert_awaited_once_with("PUT", "/auth/change-password", params=None, json_body=data)


async def test_mentor_comment_without_observation_sends_nothing(mock_client):
	with pytest.raises(SchoolReportValidationError) as exc:
		await comments.create_comment(
			mock_client,
			{"classId": CLASS_ID, "commenterRole": "mentor", "numberOfStudents": 20, "modelLesson": "Fractions"},
		)
	assert exc.value.field == "lessonObservation"
	mock_client.request.assert_not_awaited()


async def test_comment_is_sent_with_coerced_student_count(mock_client):
	await comments.create_comment(
		mock_client,
		{"classId": CLASS_ID, "commenterRole": "teacher", "numberOfStudents": "25",
			"successStory": "Everyone passed", "challenge": "Attendance"},
	)
	args, kwargs = mock_client.request.await_args
	assert args == ("POST", "/comments")
	assert kwargs["json_body"]["numberOfStudents"] == 25
