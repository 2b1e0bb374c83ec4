"""Client-side validation run before any request is sent."""

import re
from typing import Any, Dict, Iterable, List, Mapping, Sequence

import voluptuous as vol

from .const import (
	ACADEMIC_TERMS,
	COMMENTER_ROLES,
	EXAM_TYPES,
	MIN_PASSWORD_LENGTH,
	ROLE_MENTOR,
	ROLE_TEACHER,
)
from .exceptions import SchoolReportValidationError

OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")
MARK_ID_FIELDS = ("studentId", "subjectId", "teacherId", "classId", "schoolId")


def NonBlank(value: Any) -> str:
	"""Accept strings with at least one non-space character."""
	if not isinstance(value, str) or not value.strip():
		raise vol.Invalid("must not be blank")
	return value


def Positive(value: Any) -> float:
	try:
		number = float(value)
	except (TypeError, ValueError):
		raise vol.Invalid("not a number")
	if number <= 0:
		raise vol.Invalid("must be greater than 0")
	return number


def _validate(schema: vol.Schema, data: Mapping[str, Any], order: Sequence[str]) -> Dict[str, Any]:
	"""Run a schema and raise the first failure in form order."""
	try:
		return schema(dict(data))
	except vol.MultipleInvalid as err:
		def rank(error: vol.Invalid) -> int:
			key = error.path[0] if error.path else None
			return order.index(key) if key in order else len(order)

		first = sorted(err.errors, key=rank)[0]
		field = str(first.path[0]) if first.path else None
		raise SchoolReportValidationError(first.msg, field=field) from err


CLASS_SCHEMA = vol.Schema({
	vol.Required("className", msg="Please fill in all required fields"): vol.All(NonBlank, msg="Please fill in all required fields"),
	vol.Required("subjectName", msg="Please fill in all required fields"): vol.All(NonBlank, msg="Please fill in all required fields"),
	vol.Required("classRoom", msg="Please fill in all required fields"): vol.All(NonBlank, msg="Please fill in all required fields"),
	vol.Optional("classCredit"): vol.Any(None, str, int, float),
}, extra=vol.ALLOW_EXTRA)

STUDENT_SCHEMA = vol.Schema({
	vol.Required("studentName", msg="Please fill in all required fields"): vol.All(NonBlank, msg="Please fill in all required fields"),
	vol.Required("classId", msg="Please fill in all required fields"): vol.All(NonBlank, msg="Please fill in all required fields"),
	vol.Optional("schoolId"): vol.Any(None, str),
}, extra=vol.ALLOW_EXTRA)

MARKS_FORM_SCHEMA = vol.Schema({
	vol.Required("academicYear", msg="Please select an academic year"): vol.All(NonBlank, msg="Please select an academic year"),
	vol.Required("academicTerm", msg="Please select an academic term"): vol.All(vol.In(ACADEMIC_TERMS), msg="Please select an academic term"),
	vol.Required("classId", msg="Please select a class"): vol.All(NonBlank, msg="Please select a class"),
	vol.Required("examType", msg="Please select an exam type"): vol.All(vol.In(EXAM_TYPES), msg="Please select an exam type"),
	vol.Required("totalMarks", msg="Total marks must be greater than 0"): vol.All(Positive, msg="Total marks must be greater than 0"),
}, extra=vol.ALLOW_EXTRA)
MARKS_FORM_ORDER = ("academicYear", "academicTerm", "classId", "examType", "totalMarks", "selectedStudents", "studentId")

CHANGE_PASSWORD_SCHEMA = vol.Schema({
	vol.Required("oldPassword", msg="All fields are required"): vol.All(NonBlank, msg="All fields are required"),
	vol.Required("newPassword", msg="All fields are required"): vol.All(NonBlank, msg="All fields are required"),
	vol.Required("confirmPassword", msg="All fields are required"): vol.All(NonBlank, msg="All fields are required"),
}, extra=vol.ALLOW_EXTRA)

SIGNUP_SCHEMA = vol.Schema({
	vol.Required("username", msg="Username is required"): vol.All(NonBlank, msg="Username is required"),
	vol.Required("email", msg="Please enter a valid email address"): vol.All(vol.Email(), msg="Please enter a valid email address"),
	vol.Required("password", msg="Password is required"): vol.All(NonBlank, msg="Password is required"),
	vol.Optional("confirmPassword"): str,
}, extra=vol.ALLOW_EXTRA)

COMMENT_SCHEMA = vol.Schema({
	vol.Required("classId", msg="Please select a class"): vol.All(NonBlank, msg="Please select a class"),
	vol.Required("commenterRole", msg="Please select your role"): vol.All(vol.In(COMMENTER_ROLES), msg="Please select your role"),
	vol.Required("numberOfStudents", msg="Enter the number of students"): vol.All(
		vol.Coerce(int), vol.Range(min=0), msg="Enter the number of students"
	),
}, extra=vol.ALLOW_EXTRA)


def validate_class(data: Mapping[str, Any]) -> Dict[str, Any]:
	return _validate(CLASS_SCHEMA, data, ("className", "subjectName", "classRoom"))


def validate_student(data: Mapping[str, Any]) -> Dict[str, Any]:
	return _validate(STUDENT_SCHEMA, data, ("studentName", "classId"))


def validate_marks_form(data: Mapping[str, Any], require_students: bool = True) -> Dict[str, Any]:
	"""Validate the marks form; with require_students at least one must be selected."""
	validated = _validate(MARKS_FORM_SCHEMA, data, MARKS_FORM_ORDER)
	if require_students and not data.get("selectedStudents"):
		raise SchoolReportValidationError("Please select at least one student", field="selectedStudents")
	return validated


def validate_change_password(data: Mapping[str, Any]) -> Dict[str, Any]:
	validated = _validate(CHANGE_PASSWORD_SCHEMA, data, ("oldPassword", "newPassword", "confirmPassword"))
	if len(validated["newPassword"]) < MIN_PASSWORD_LENGTH:
		raise SchoolReportValidationError(
			f"New password must be at least {MIN_PASSWORD_LENGTH} characters long", field="newPassword"
		)
	if validated["newPassword"] != validated["confirmPassword"]:
		raise SchoolReportValidationError("New password and confirm password do not match", field="confirmPassword")
	if validated["oldPassword"] == validated["newPassword"]:
		raise SchoolReportValidationError("New password must be different from old password", field="newPassword")
	return validated


def validate_signup(data: Mapping[str, Any]) -> Dict[str, Any]:
	validated = _validate(SIGNUP_SCHEMA, data, ("username", "email", "password", "confirmPassword"))
	confirm = data.get("confirmPassword")
	if confirm is not None and confirm != data.get("password"):
		raise SchoolReportValidationError("Passwords do not match", field="confirmPassword")
	return validated


def validate_comment(data: Mapping[str, Any]) -> Dict[str, Any]:
	"""Teachers report a success story and a challenge, mentors a model lesson and an observation."""
	validated = _validate(COMMENT_SCHEMA, data, ("classId", "commenterRole", "numberOfStudents"))
	if validated["commenterRole"] == ROLE_TEACHER:
		required = ("successStory", "challenge")
	elif validated["commenterRole"] == ROLE_MENTOR:
		required = ("modelLesson", "lessonObservation")
	else:
		required = ()
	for name in required:
		value = data.get(name)
		if not isinstance(value, str) or not value.strip():
			raise SchoolReportValidationError(f"{name} is required for {validated['commenterRole']} comments", field=name)
	return validated


def validate_bulk_marks(marks: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
	"""Check every mark carries all reference ids as 24-hex ObjectIds."""
	validated = []
	for index, mark in enumerate(marks, start=1):
		missing = [
			name for name in MARK_ID_FIELDS
			if not isinstance(mark.get(name), str) or not mark.get(name).strip()
		]
		if missing:
			raise SchoolReportValidationError(
				f"Mark {index} is missing required fields: {', '.join(missing)}", field=missing[0]
			)
		invalid = [name for name in MARK_ID_FIELDS if not OBJECT_ID_RE.match(mark[name])]
		if invalid:
			raise SchoolReportValidationError(
				f"Mark {index} has invalid ObjectId format for fields: {', '.join(invalid)}", field=invalid[0]
			)
		validated.append(mark)
	return validated
