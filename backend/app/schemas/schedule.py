from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.catalog import RequestType, SectionSizes
from app.schemas.scheduling import SchedulingOptions

NO_AVAILABLE_SPACE = "No available space"
COURSE_NOT_OFFERED = "Course not offered"

UnresolvedReason = Literal["No available space", "Course not offered"]


class PayloadModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SectionPayload(PayloadModel):
    section_number: int = Field(ge=1)
    block: str
    room: str | None = None
    lecturer: str | None = None
    students: list[str] = Field(default_factory=list)
    capacity: SectionSizes


class CourseAssignmentPayload(PayloadModel):
    course_code: str
    title: str = ""
    sections: list[SectionPayload] = Field(default_factory=list)


class AssignedCourse(PayloadModel):
    course_code: str
    title: str | None = None
    block: str
    room: str | None = None
    section_number: int
    request_type: RequestType = Field(alias="type")


class UnresolvedRequest(PayloadModel):
    course_code: str
    title: str | None = None
    request_type: RequestType = Field(alias="type")
    reason: UnresolvedReason


class StudentSchedule(PayloadModel):
    student_id: str
    college_year: int | str | None = None
    assigned_courses: list[AssignedCourse] = Field(default_factory=list)
    unresolved_requests: list[UnresolvedRequest] = Field(default_factory=list)


class LecturerBlockEntry(PayloadModel):
    course_code: str
    title: str = ""
    room: str | None = None
    student_count: int = Field(ge=0)
    section_number: int


class LecturerSchedule(PayloadModel):
    lecturer_id: str
    blocks: dict[str, LecturerBlockEntry] = Field(default_factory=dict)


class TypeStatistics(PayloadModel):
    total: int = 0
    resolved: int = 0
    resolution_rate: str = "0.00%"


class PriorityBreakdown(PayloadModel):
    required: TypeStatistics = Field(default_factory=TypeStatistics)
    requested: TypeStatistics = Field(default_factory=TypeStatistics)
    recommended: TypeStatistics = Field(default_factory=TypeStatistics)


class SchedulingStatistics(PayloadModel):
    total_requests: int = 0
    resolved_requests: int = 0
    overall_resolution_rate: str = "0.00%"
    by_priority: PriorityBreakdown = Field(default_factory=PriorityBreakdown)
    course_assignments: dict[str, int] = Field(default_factory=dict)


class OversubscribedCourse(PayloadModel):
    course_code: str
    title: str = ""
    requests: int
    capacity: int
    ratio: float | None = None


class ValidationReport(PayloadModel):
    missing_courses: list[str] = Field(default_factory=list)
    oversubscribed_courses: list[OversubscribedCourse] = Field(default_factory=list)
    courses_without_rooms: list[str] = Field(default_factory=list)
    courses_without_lecturers: list[str] = Field(default_factory=list)
    courses_with_multiple_lecturers: list[str] = Field(default_factory=list)
    courses_missing_capacity: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class RefinementReport(PayloadModel):
    strategy: str
    iterations: int = 0
    accepted: int = 0
    rejected: int = 0
    exhausted: int = 0
    converged: bool = True
    initial_conflict_score: int = 0
    final_conflict_score: int = 0


class ScheduleResult(PayloadModel):
    blocks: list[str]
    assignments: dict[str, CourseAssignmentPayload] = Field(default_factory=dict)
    student_schedules: dict[str, StudentSchedule] = Field(default_factory=dict)
    teacher_schedules: dict[str, LecturerSchedule] = Field(default_factory=dict)
    statistics: SchedulingStatistics = Field(default_factory=SchedulingStatistics)
    validation: ValidationReport = Field(default_factory=ValidationReport)
    refinement: RefinementReport
    options_used: SchedulingOptions
    runtime_ms: int = 0


class GenerateScheduleResponse(PayloadModel):
    run_id: str | None = None
    label: str | None = None
    result: ScheduleResult


class ScheduleRunSummary(PayloadModel):
    id: str
    label: str
    summary: dict = Field(default_factory=dict)
    created_at: datetime | None = None


class ScheduleRunOut(ScheduleRunSummary):
    result: ScheduleResult
