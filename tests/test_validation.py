#!/usr/bin/env python3
"""Unit tests for client-side form validation."""

import pytest

from schoolreport.exceptions import SchoolReportValidationError
from schoolreport.validation import (
	validate_bulk_marks,
	validate_change_password,
	validate_class,
	validate_comment,
	validate_marks_form,
	validate_signup,
	validate_student,
)

from conftest import CLASS_ID, SCHOOL_ID, STUDENT_IDS, TEACHER_ID

MARKS_FORM = {
	"academicYear": "2024-2025",
	"academicTerm": "FIRST_TERM",
	"classId": CLASS_ID,
	"examType": "MIDTERM",
	"totalMarks": "80",
	"selectedStudents": STUDENT_IDS[:1],
}


def test_class_requires_name_subject_and_room():
	assert validate_class({"className": "5A", "subjectName": "Maths", "classRoom": "R1"})["className"] == "5A"
	with pytest.raises(SchoolReportValidationError) as exc:
		validate_class({"className": "  ", "subjectName": "Maths", "classRoom": "R1"})
	assert str(exc.value) == "Please fill in all required fields"
	assert exc.value.field == "className"


def test_student_requires_name_and_class():
	with pytest.raises(SchoolReportValidationError):
		validate_student({"studentName": "Ada"})
	assert validate_student({"studentName": "Ada", "classId": CLASS_ID})["classId"] == CLASS_ID


def test_marks_form_reports_first_problem_in_form_order():
	with pytest.raises(SchoolReportValidationError) as exc:
		validate_marks_form(dict(MARKS_FORM, academicYear="", examType="NOPE"))
	assert str(exc.value) == "Please select an academic year"

	with pytest.raises(SchoolReportValidationError) as exc:
		validate_marks_form(dict(MARKS_FORM, totalMarks="0"))
	assert str(exc.value) == "Total marks must be greater than 0"


def test_marks_form_needs_students_unless_editing():
	form = dict(MARKS_FORM, selectedStudents=[])
	with pytest.raises(SchoolReportValidationError) as exc:
		validate_marks_form(form)
	assert str(exc.value) == "Please select at least one student"
	assert validate_marks_form(form, require_students=False)["totalMarks"] == 80


def test_change_password_rules():
	ok = {"oldPassword": "secret1", "newPassword": "secret2", "confirmPassword": "secret2"}
	assert validate_change_password(ok)["newPassword"] == "secret2"

	cases = [
		(dict(ok, oldPassword=""), "All fields are required"),
		(dict(ok, newPassword="abc", confirmPassword="abc"), "New password must be at least 6 characters long"),
		(dict(ok, confirmPassword="secret3"), "New password and confirm password do not match"),
		(dict(ok, newPassword="secret1", confirmPassword="secret1"), "New password must be different from old password"),
	]
	for data, message in cases:
		with pytest.raises(SchoolReportValidationError) as exc:
			validate_change_password(data)
		assert str(exc.value) == message


def test_signup_checks_email_and_confirmation():
	base = {"username": "ada", "email": "ada@example.com", "password": "secret1"}
	assert validate_signup(base)["username"] == "ada"
	with pytest.raises(SchoolReportValidationError) as exc:
		validate_signup(dict(base, email="not-an-email"))
	assert exc.value.field == "email"
	with pytest.raises(SchoolReportValidationError):
		validate_signup(dict(base, confirmPassword="other"))


def test_comment_fields_depend_on_role():
	teacher = {"classId": CLASS_ID, "commenterRole": "teacher", "numberOfStudents": "25",
		"successStory": "Everyone passed", "challenge": "Attendance"}
	assert validate_comment(teacher)["numberOfStudents"] == 25
	with pytest.raises(SchoolReportValidationError) as exc:
		validate_comment({"classId": CLASS_ID, "commenterRole": "mentor", "numberOfStudents": 10, "modelLesson": "x"})
	assert exc.value.field == "lessonObservation"


def _bulk_mark(**overrides):
	mark = {
		"studentId": STUDENT_IDS[0],
		"subjectId": CLASS_ID,
		"teacherId": TEACHER_ID,
		"classId": CLASS_ID,
		"schoolId": SCHOOL_ID,
		"totalMarks": 50,
	}
	mark.update(overrides)
	return mark


def test_bulk_marks_need_every_reference():
	assert len(validate_bulk_marks([_bulk_mark(), _bulk_mark()])) == 2
	with pytest.raises(SchoolReportValidationError) as exc:
		validate_bulk_marks([_bulk_mark(), _bulk_mark(schoolId=None)])
	assert str(exc.value) == "Mark 2 is missing required fields: schoolId"


def test_bulk_marks_need_object_ids():
	with pytest.raises(SchoolReportValidationError) as exc:
		validate_bulk_marks([_bulk_mark(teacherId="teacher-1")])
	assert str(exc.value) == "Mark 1 has invalid ObjectId format for fields: teacherId"
