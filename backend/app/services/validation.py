from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence

from app.schemas.catalog import Catalog
from app.schemas.schedule import OversubscribedCourse, ValidationReport

logger = logging.getLogger(__name__)


def validate_catalog(catalog: Catalog, blocks: Sequence[str] | None = None) -> ValidationReport:
    """Data-quality report for a catalog. Nothing here is fatal."""
    report = ValidationReport()
    courses = catalog.course_map()

    if blocks is not None:
        known = set(blocks)
        for course in courses.values():
            unknown = [block for block in course.available_blocks if block not in known]
            if unknown:
                report.warnings.append(
                    f"Course {course.course_code} lists unknown block(s) {', '.join(unknown)}; they are ignored"
                )

    duplicate_codes = [code for code, count in Counter(c.course_code for c in catalog.courses).items() if count > 1]
    for code in duplicate_codes:
        report.warnings.append(f"Course code {code} appears more than once; the first entry is used")

    request_counts: Counter[str] = Counter()
    missing: list[str] = []
    for student in catalog.students:
        for request in student.requests:
            if request.course_code in courses:
                request_counts[request.course_code] += 1
            elif request.course_code not in missing:
                missing.append(request.course_code)
    report.missing_courses = missing

    oversubscribed: list[OversubscribedCourse] = []
    for course in courses.values():
        if not course.assigned_rooms:
            report.courses_without_rooms.append(course.course_code)
        if not course.lecturer_ids:
            report.courses_without_lecturers.append(course.course_code)
        elif len(set(course.lecturer_ids)) > 1:
            report.courses_with_multiple_lecturers.append(course.course_code)
        if course.section_sizes.max is None:
            report.courses_missing_capacity.append(course.course_code)
            continue

        capacity = course.section_sizes.max * course.section_count
        requests = request_counts[course.course_code]
        if requests > capacity:
            oversubscribed.append(
                OversubscribedCourse(
                    course_code=course.course_code,
                    title=course.title,
                    requests=requests,
                    capacity=capacity,
                    ratio=round(requests / capacity, 4) if capacity else None,
                )
            )
    # Highest demand ratio first; zero-capacity courses lead.
    oversubscribed.sort(key=lambda item: item.ratio if item.ratio is not None else float("inf"), reverse=True)
    report.oversubscribed_courses = oversubscribed

    if missing:
        logger.warning("CATALOG VALIDATION | missing_courses=%s", ",".join(missing))
    if report.courses_without_rooms:
        logger.warning("CATALOG VALIDATION | courses_without_rooms=%s", len(report.courses_without_rooms))
    if report.courses_without_lecturers:
        logger.warning("CATALOG VALIDATION | courses_without_lecturers=%s", len(report.courses_without_lecturers))
    return report
