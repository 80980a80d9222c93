from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.schemas.catalog import Catalog, Course, RequestType

logger = logging.getLogger(__name__)


@dataclass
class RequestCounts:
    required: int = 0
    requested: int = 0
    recommended: int = 0

    @property
    def total(self) -> int:
        return self.required + self.requested + self.recommended

    def add(self, request_type: RequestType) -> None:
        if request_type is RequestType.required:
            self.required += 1
        elif request_type is RequestType.requested:
            self.requested += 1
        else:
            self.recommended += 1


@dataclass(frozen=True)
class PrioritizedCourse:
    course: Course
    priority_score: int
    counts: RequestCounts = field(compare=False)

    @property
    def course_code(self) -> str:
        return self.course.course_code


def tally_requests(catalog: Catalog) -> dict[str, RequestCounts]:
    """Count requests per course code and type.

    Codes that are not in the catalog are left out; validation reports them.
    """
    counts = {course.course_code: RequestCounts() for course in catalog.courses}
    skipped = 0
    for student in catalog.students:
        for request in student.requests:
            bucket = counts.get(request.course_code)
            if bucket is None:
                skipped += 1
                continue
            bucket.add(request.request_type)
    if skipped:
        logger.warning("DEMAND TALLY | skipped_requests=%s | reason=unknown course code", skipped)
    return counts


def priority_score(counts: RequestCounts) -> int:
    return (
        counts.required * RequestType.required.weight
        + counts.requested * RequestType.requested.weight
        + counts.recommended * RequestType.recommended.weight
    )


def prioritize_courses(catalog: Catalog) -> list[PrioritizedCourse]:
    counts = tally_requests(catalog)
    prioritized = []
    for course in catalog.course_map().values():
        course_counts = counts[course.course_code]
        prioritized.append(
            PrioritizedCourse(course=course, priority_score=priority_score(course_counts), counts=course_counts)
        )
    # sorted() is stable, so equal scores keep catalog order.
    return sorted(prioritized, key=lambda item: item.priority_score, reverse=True)
