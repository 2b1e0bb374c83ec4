#!/usr/bin/env python3
"""Unit tests for report flattening and XLSX/CSV output."""

import csv
import io
from datetime import date

import pytest
from openpyxl import load_workbook

from schoolreport.client import Download
from schoolreport.export import (
	Table,
	export_report_xlsx,
	flatten_attendance,
	flatten_comments,
	flatten_marks,
	save_download,
	write_csv,
	write_xlsx,
)

CLASSES = [{"_id": "c1", "className": "Grade 5", "subjectName": "Maths"}]
STUDENTS = [{"_id": "s1", "studentName": "Ada"}]


def test_flatten_marks_uses_fallback_chain():
	report = {"marks": [
		{
			"studentId": "s1",
			"classId": "c1",
			"teacherId": {"username": "mrs_k"},
			"examType": "MIDTERM",
			"academicYear": "2024-2025",
			"academicTerm": "FIRST_TERM",
			"examDate": "2024-10-01T00:00:00.000Z",
			"totalMarks": 77,
		},
		{"studentId": {"_id": "s2", "studentName": "Bo"}},
	]}
	table = flatten_marks(report, students=STUDENTS, classes=CLASSES)
	first, second = table.rows
	assert first["Student"] == "Ada"
	assert first["Class"] == "Grade 5"
	assert first["Subject"] == "Maths"
	assert first["Teacher"] == "mrs_k"
	assert first["Exam Date"] == "2024-10-01"
	assert first["Total Marks"] == 77
	assert second["Student"] == "Bo"
	assert second["Class"] == "N/A"
	assert second["Total Marks"] == "N/A"


def test_flatten_attendance_and_comments():
	attendance = flatten_attendance([{"studentId": "s1", "classId": "c1", "date": "2024-09-02", "status": "late"}],
		students=STUDENTS, classes=CLASSES)
	assert attendance.values() == [["Ada", "Grade 5", "2024-09-02", "late", ""]]

	comments = flatten_comments({"comments": [{"classId": "c1", "modelLesson": "Fractions", "numberOfStudents": 20}]},
		classes=CLASSES)
	row = comments.rows[0]
	assert row["Role"] == "mentor"
	assert row["Class"] == "Grade 5"
	assert row["Number of Students"] == 20
	assert row["Date"] == "N/A"


def test_write_xlsx_one_sheet_per_table_with_bold_header():
	marks = Table("Marks", ("Student", "Score"), [{"Student": "Ada", "Score": 90}])
	attendance = Table("Attendance: Sep/2024", ("Student", "Status"), [{"Student": "Ada", "Status": "present"}])
	workbook = load_workbook(io.BytesIO(write_xlsx([marks, attendance])))
	assert workbook.sheetnames == ["Marks", "Attendance_ Sep_2024"]
	sheet = workbook["Marks"]
	assert sheet["A1"].value == "Student"
	assert sheet["A1"].font.bold
	assert sheet["B2"].value == 90


def test_write_xlsx_deduplicates_sheet_titles():
	tables = [Table("Report", ("A",)), Table("Report", ("A",))]
	workbook = load_workbook(io.BytesIO(write_xlsx(tables)))
	assert workbook.sheetnames == ["Report", "Report (2)"]


def test_export_report_xlsx():
	content = export_report_xlsx({"attendance": [{"studentId": "s1", "status": "present"}]}, "attendance",
		students=STUDENTS)
	sheet = load_workbook(io.BytesIO(content))["Attendance"]
	assert sheet["A2"].value == "Ada"
	with pytest.raises(ValueError):
		export_report_xlsx([], "grades")


def test_csv_quotes_commas_quotes_and_newlines():
	table = Table("Comments", ("Teacher", "Note"), [
		{"Teacher": "Smith, J", "Note": 'said "well done"'},
		{"Teacher": "Lee", "Note": "line one\nline two"},
	])
	text = write_csv(table)
	assert text.splitlines()[1] == '"Smith, J","said ""well done"""'
	assert list(csv.reader(io.StringIO(text))) == [
		["Teacher", "Note"],
		["Smith, J", 'said "well done"'],
		["Lee", "line one\nline two"],
	]


def test_save_download(tmp_path):
	path = save_download(Download(content=b"PK\x03\x04", filename="class_report.xlsx"), tmp_path)
	assert path == tmp_path / "class_report.xlsx"
	assert path.read_bytes() == b"PK\x03\x04"

	csv_path = save_download("a,b\n", tmp_path / "out", "marks.csv")
	assert csv_path.read_text() == "a,b\n"

	default_path = save_download(b"data", tmp_path)
	assert default_path.name == f"report_{date.today().isoformat()}.xlsx"
