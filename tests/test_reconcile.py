#!/usr/bin/env python3
"""Unit tests for the attendance/marks reconciliation buffers."""

from unittest.mock import AsyncMock

import pytest

from schoolreport.exceptions import SchoolReportAPIError
from schoolreport.models import AttendanceContext, MarkContext
from schoolreport.reconcile import (
	CREATE,
	UPDATE,
	AttendanceBuffer,
	InFlightGuard,
	MarksBuffer,
	execute_plan,
)

MIDTERM = MarkContext("c1", "2024-2025", "FIRST_TERM", "MIDTERM")
ENDTERM = MarkContext("c1", "2024-2025", "FIRST_TERM", "ENDTERM")
MONDAY = AttendanceContext("c1", "2024-09-02")
TUESDAY = AttendanceContext("c1", "2024-09-03")


def _mark(mark_id, student_id, context, total):
	return {
		"_id": mark_id,
		"studentId": {"_id": student_id, "studentName": student_id.upper()},
		"classId": context.class_id,
		"academicYear": context.academic_year,
		"academicTerm": context.academic_term,
		"examType": context.exam_type,
		"totalMarks": total,
	}


def _attendance(record_id, student_id, context, status):
	return {
		"_id": record_id,
		"studentId": student_id,
		"classId": {"_id": context.class_id, "className": "Grade 5"},
		"date": f"{context.date}T00:00:00.000Z",
		"status": status,
	}


def test_marks_are_clamped_to_range():
	buffer = MarksBuffer(MIDTERM, max_marks=50)
	assert buffer.stage("s1", "75") == 50
	assert buffer.stage("s1", -3) == 0
	assert buffer.stage("s1", "12.5") == 12.5
	assert buffer.stage("s1", " 20 ") == 20


def test_non_numeric_marks_are_no_entry():
	buffer = MarksBuffer(MIDTERM)
	for raw in ("", "abc", None, True, "nan"):
		assert buffer.stage("s1", raw) is None
	assert buffer.classify("s1") is None
	assert not buffer.is_dirty


def test_attendance_accepts_only_known_statuses():
	buffer = AttendanceBuffer(MONDAY)
	assert buffer.stage("s1", "Present") == "present"
	assert buffer.stage("s1", " LATE ") == "late"
	assert buffer.stage("s1", True) == "present"
	assert buffer.stage("s1", False) == "absent"
	assert buffer.stage("s1", "maybe") is None
	assert buffer.stage("s1", 3) is None


def test_classification_is_idempotent():
	buffer = MarksBuffer(MIDTERM)
	buffer.load([_mark("m1", "s1", MIDTERM, 40)])

	buffer.stage("s1", 40)
	assert buffer.classify("s1") is None
	assert buffer.classify("s1") is None

	buffer.stage("s1", 45)
	assert buffer.classify("s1") == UPDATE
	assert buffer.classify("s1") == UPDATE

	buffer.stage("s2", 30)
	assert buffer.classify("s2") == CREATE
	assert buffer.classify("s3") is None


def test_plan_splits_creates_updates_and_skips():
	buffer = MarksBuffer(MIDTERM)
	buffer.load([_mark("m1", "s1", MIDTERM, 40), _mark("m4", "s4", MIDTERM, 10)])
	buffer.stage("s1", 45)
	buffer.stage("s2", 30)
	plan = buffer.plan(["s1", "s2", "s3", "s4"])
	assert plan.creates == ["s2"]
	assert plan.updates == [("s1", "m1")]
	assert plan.skipped == ["s3", "s4"]


def test_contexts_do_not_leak_into_each_other():
	buffer = MarksBuffer(MIDTERM)
	buffer.load([_mark("m1", "s1", MIDTERM, 40), _mark("m2", "s1", ENDTERM, 70)])
	assert buffer.entered("s1") == 40

	buffer.switch_context(ENDTERM)
	assert buffer.entered("s1") == 70
	assert buffer.saved_record_id("s1") == "m2"
	buffer.stage("s1", 75)
	assert buffer.is_dirty

	buffer.switch_context(MIDTERM)
	assert buffer.entered("s1") == 40
	assert not buffer.is_dirty
	assert buffer.plan(["s1"]).is_empty


def test_attendance_days_keep_their_own_entries():
	buffer = AttendanceBuffer(MONDAY)
	buffer.stage("s1", "late")
	buffer.switch_context(TUESDAY)
	assert buffer.entered("s1") is None
	buffer.stage("s1", "present")
	buffer.switch_context(MONDAY)
	assert buffer.entered("s1") == "late"


def test_merge_uses_the_records_own_context():
	buffer = MarksBuffer(MIDTERM)
	merged = buffer.merge([_mark("m9", "s1", ENDTERM, 88)])
	assert merged == [("s1", ENDTERM)]
	assert buffer.entry("s1") is None
	assert buffer.entry("s1", ENDTERM).saved == 88
	assert buffer.entry("s1", ENDTERM).record_id == "m9"


def test_merge_skips_records_without_student():
	buffer = AttendanceBuffer(MONDAY)
	assert buffer.merge([{"_id": "a1", "classId": "c1", "date": "2024-09-02", "status": "present"}]) == []


def test_discard_restores_saved_value():
	buffer = AttendanceBuffer(MONDAY)
	buffer.load([_attendance("a1", "s1", MONDAY, "present")])
	buffer.stage("s1", "absent")
	assert buffer.is_dirty
	buffer.discard("s1")
	assert buffer.entered("s1") == "present"
	assert not buffer.is_dirty


def test_fill_missing_defaults_to_absent():
	buffer = AttendanceBuffer(MONDAY, school_id="sch")
	buffer.load([_attendance("a1", "s1", MONDAY, "present")])
	buffer.stage("s2", "late")
	assert buffer.fill_missing(["s1", "s2", "s3"]) == ["s3"]
	assert buffer.entered("s3") == "absent"
	plan = buffer.plan(["s1", "s2", "s3"])
	assert plan.creates == ["s2", "s3"]
	assert plan.updates == []


def test_attendance_create_payload():
	buffer = AttendanceBuffer(MONDAY, school_id="sch")
	buffer.student_schools["s2"] = "other-school"
	assert buffer.create_payload("s1", "present") == {
		"studentId": "s1",
		"classId": "c1",
		"schoolId": "sch",
		"date": "2024-09-02",
		"status": "present",
	}
	assert buffer.create_payload("s2", "late")["schoolId"] == "other-school"
	assert buffer.update_payload("s1", "late") == {"status": "late"}


def test_marks_create_payload_defaults_subject_to_class():
	buffer = MarksBuffer(MIDTERM, teacher_id="t1", school_id="sch", exam_date="2024-10-01")
	payload = buffer.create_payload("s1", 42)
	assert payload["subjectId"] == "c1"
	assert payload["teacherId"] == "t1"
	assert payload["examType"] == "MIDTERM"
	assert payload["examDate"] == "2024-10-01"
	assert buffer.update_payload("s1", 42) == {"totalMarks": 42}


async def test_execute_plan_sends_one_batch_and_individual_updates():
	buffer = MarksBuffer(MIDTERM, teacher_id="t1", school_id="sch")
	buffer.load([_mark("m1", "s1", MIDTERM, 40)])
	buffer.stage("s1", 45)
	buffer.stage("s2", 30)
	buffer.stage("s3", 20)
	plan = buffer.plan(["s1", "s2", "s3"])

	bulk_create = AsyncMock(return_value={"marks": [
		_mark("m2", "s2", MIDTERM, 30),
		_mark("m3", "s3", MIDTERM, 20),
	]})
	update_one = AsyncMock(return_value={"mark": _mark("m1", "s1", MIDTERM, 45)})

	result = await execute_plan(buffer, plan, bulk_create, update_one)

	bulk_create.assert_awaited_once()
	payloads = bulk_create.await_args.args[0]
	assert [p["studentId"] for p in payloads] == ["s2", "s3"]
	update_one.assert_awaited_once_with("m1", {"totalMarks": 45})
	assert result.merged_count == 3
	assert buffer.saved_record_id("s2") == "m2"
	assert buffer.saved("s1") == 45
	assert not buffer.is_dirty


async def test_execute_plan_merges_creates_before_raising_update_failure():
	buffer = AttendanceBuffer(MONDAY)
	buffer.load([_attendance("a1", "s1", MONDAY, "present")])
	buffer.stage("s1", "absent")
	buffer.stage("s2", "present")
	plan = buffer.plan(["s1", "s2"])

	bulk_create = AsyncMock(return_value={"records": [_attendance("a2", "s2", MONDAY, "present")]})
	update_one = AsyncMock(side_effect=SchoolReportAPIError("boom", status=500))

	with pytest.raises(SchoolReportAPIError):
		await execute_plan(buffer, plan, bulk_create, update_one)

	assert buffer.saved_record_id("s2") == "a2"
	assert buffer.saved("s1") == "present"
	assert buffer.entered("s1") == "absent"


async def test_execute_plan_with_nothing_to_do():
	buffer = MarksBuffer(MIDTERM)
	bulk_create = AsyncMock()
	update_one = AsyncMock()
	result = await execute_plan(buffer, buffer.plan(["s1"]), bulk_create, update_one)
	assert result.merged_count == 0
	bulk_create.assert_not_awaited()
	update_one.assert_not_awaited()


def test_in_flight_guard_refuses_second_claim():
	guard = InFlightGuard()
	key = ("s1", MONDAY)
	assert guard.claim(key)
	assert not guard.claim(key)
	assert key in guard
	guard.release(key)
	assert key not in guard
	assert guard.claim(key)
	assert len(guard) == 1
