from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from app.schemas.catalog import Catalog, RequestType
from app.services.sections import CourseAssignment, Section

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingRequest:
    student_id: str
    course_code: str
    request_type: RequestType
    college_year: int | str | None = None


@dataclass
class PlacementOutcome:
    enrolled: int = 0
    unresolved: int = 0
    duplicates: int = 0


def pick_section(sections: list[Section]) -> Section | None:
    """Least-filled section with room left; ties go to the first declared."""
    best: Section | None = None
    for section in sections:
        if section.has_room and (best is None or section.enrolled_count < best.enrolled_count):
            best = section
    return best


class StudentPlacement:
    def __init__(self, catalog: Catalog) -> None:
        self._requests: dict[str, list[PendingRequest]] = defaultdict(list)
        for student in catalog.students:
            for request in student.requests:
                self._requests[request.course_code].append(
                    PendingRequest(
                        student_id=student.student_id,
                        course_code=request.course_code,
                        request_type=request.request_type,
                        college_year=student.college_year,
                    )
                )

    def requests_for(self, course_code: str) -> list[PendingRequest]:
        pending = self._requests.get(course_code, [])
        # Stable: within one request type, catalog order decides.
        return sorted(pending, key=lambda item: item.request_type.weight, reverse=True)

    def place(self, assignment: CourseAssignment, warnings: list[str]) -> PlacementOutcome:
        outcome = PlacementOutcome()
        for request in self.requests_for(assignment.course_code):
            if assignment.section_of(request.student_id) is not None:
                outcome.duplicates += 1
                warnings.append(
                    f"Student {request.student_id} requested {assignment.course_code} more than once; enrolled once"
                )
                continue
            section = pick_section(assignment.sections)
            if section is None:
                outcome.unresolved += 1
                continue
            section.enroll(request.student_id)
            outcome.enrolled += 1
        logger.info(
            "STUDENT PLACEMENT | course=%s | enrolled=%s | unresolved=%s | duplicates=%s",
            assignment.course_code,
            outcome.enrolled,
            outcome.unresolved,
            outcome.duplicates,
        )
        return outcome
