from __future__ import annotations

import logging

from app.schemas.catalog import Catalog, RequestType
from app.schemas.schedule import (
    COURSE_NOT_OFFERED,
    NO_AVAILABLE_SPACE,
    AssignedCourse,
    LecturerBlockEntry,
    LecturerSchedule,
    PriorityBreakdown,
    SchedulingStatistics,
    StudentSchedule,
    TypeStatistics,
    UnresolvedRequest,
)
from app.schemas.scheduling import LecturerCollisionPolicy
from app.services.sections import AssignmentStore

logger = logging.getLogger(__name__)


def format_rate(resolved: int, total: int) -> str:
    rate = (resolved / total) * 100 if total > 0 else 0.0
    return f"{rate:.2f}%"


def build_student_schedules(catalog: Catalog, store: AssignmentStore) -> dict[str, StudentSchedule]:
    schedules: dict[str, StudentSchedule] = {}
    for student in catalog.students:
        schedule = schedules.setdefault(
            student.student_id,
            StudentSchedule(student_id=student.student_id, college_year=student.college_year),
        )
        for request in student.requests:
            assignment = store.get(request.course_code)
            section = assignment.section_of(student.student_id) if assignment is not None else None
            if section is not None:
                schedule.assigned_courses.append(
                    AssignedCourse(
                        course_code=request.course_code,
                        title=request.course_title,
                        block=section.block,
                        room=section.room,
                        section_number=section.section_number,
                        request_type=request.request_type,
                    )
                )
                continue
            schedule.unresolved_requests.append(
                UnresolvedRequest(
                    course_code=request.course_code,
                    title=request.course_title,
                    request_type=request.request_type,
                    reason=NO_AVAILABLE_SPACE if assignment is not None else COURSE_NOT_OFFERED,
                )
            )
    return schedules


def build_lecturer_schedules(
    catalog: Catalog,
    store: AssignmentStore,
    *,
    collision_policy: LecturerCollisionPolicy = "first_wins",
    warnings: list[str] | None = None,
) -> dict[str, LecturerSchedule]:
    """Map each lecturer's blocks to the section taught there.

    A lecturer holds one entry per block. When two sections land on the same
    block the policy decides which one stays, and the collision is reported.
    """
    schedules = {
        lecturer.lecturer_id: LecturerSchedule(lecturer_id=lecturer.lecturer_id) for lecturer in catalog.lecturers
    }
    for assignment in store:
        for section in assignment.sections:
            schedule = schedules.get(section.lecturer) if section.lecturer else None
            if schedule is None:
                continue
            entry = LecturerBlockEntry(
                course_code=assignment.course_code,
                title=assignment.title,
                room=section.room,
                student_count=section.enrolled_count,
                section_number=section.section_number,
            )
            existing = schedule.blocks.get(section.block)
            if existing is not None:
                message = (
                    f"Lecturer {schedule.lecturer_id} is booked twice in block {section.block}: "
                    f"{existing.course_code} section {existing.section_number} and "
                    f"{entry.course_code} section {entry.section_number} ({collision_policy})"
                )
                logger.warning(
                    "LECTURER BLOCK COLLISION | lecturer=%s | block=%s | kept=%s | dropped=%s",
                    schedule.lecturer_id,
                    section.block,
                    existing.course_code if collision_policy == "first_wins" else entry.course_code,
                    entry.course_code if collision_policy == "first_wins" else existing.course_code,
                )
                if warnings is not None:
                    warnings.append(message)
                if collision_policy == "first_wins":
                    continue
            schedule.blocks[section.block] = entry
    return schedules


def compute_statistics(catalog: Catalog, store: AssignmentStore) -> SchedulingStatistics:
    enrolled_courses: dict[str, set[str]] = {}
    course_assignments: dict[str, int] = {}
    for assignment in store:
        course_assignments[assignment.course_code] = assignment.enrolled_count
        for section in assignment.sections:
            for student_id in section.students:
                enrolled_courses.setdefault(student_id, set()).add(assignment.course_code)

    totals = {request_type: 0 for request_type in RequestType}
    resolved = {request_type: 0 for request_type in RequestType}
    for student in catalog.students:
        courses = enrolled_courses.get(student.student_id, set())
        for request in student.requests:
            totals[request.request_type] += 1
            if request.course_code in courses:
                resolved[request.request_type] += 1

    def breakdown(request_type: RequestType) -> TypeStatistics:
        return TypeStatistics(
            total=totals[request_type],
            resolved=resolved[request_type],
            resolution_rate=format_rate(resolved[request_type], totals[request_type]),
        )

    total_requests = sum(totals.values())
    resolved_requests = sum(resolved.values())
    return SchedulingStatistics(
        total_requests=total_requests,
        resolved_requests=resolved_requests,
        overall_resolution_rate=format_rate(resolved_requests, total_requests),
        by_priority=PriorityBreakdown(
            required=breakdown(RequestType.required),
            requested=breakdown(RequestType.requested),
            recommended=breakdown(RequestType.recommended),
        ),
        course_assignments=course_assignments,
    )
