"""Turn spreadsheet rows into a normalized Catalog.

Rows arrive as dicts keyed by the workbook's column headers (one list per sheet:
"Lecturer Details", "Rooms data", "Course list", "Student requests"). Reading
the workbook file itself happens outside this service.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from app.core.exceptions import CatalogError
from app.schemas.catalog import REQUIRED_ENTITY_LISTS, Catalog, RequestType
from app.schemas.ingestion import WorkbookRows

logger = logging.getLogger(__name__)

REQUEST_TYPE_VALUES = {item.value for item in RequestType}


def load_catalog(data: dict[str, Any]) -> Catalog:
    """Validate already-normalized catalog JSON, failing fast on missing entity lists."""
    if not isinstance(data, dict):
        raise CatalogError(REQUIRED_ENTITY_LISTS)
    missing = [name for name in REQUIRED_ENTITY_LISTS if data.get(name) is None]
    if missing:
        raise CatalogError(missing)
    return Catalog.model_validate(data)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _float(value: Any, column: str) -> float | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("CATALOG IMPORT | column=%s | value=%r | reason=not a number, left empty", column, value)
        return None


def _grouped(rows: Sequence[dict[str, Any]], key: str) -> dict[str, list[dict[str, Any]]]:
    groups: dict[str, list[dict[str, Any]]] = {}
    for row in rows:
        value = _text(row.get(key))
        if value is None:
            continue
        groups.setdefault(value, []).append(row)
    return groups


def _unique(values) -> list[str]:
    seen: list[str] = []
    for value in values:
        text = _text(value)
        if text is not None and text not in seen:
            seen.append(text)
    return seen


def catalog_from_rows(workbook: WorkbookRows, blocks: Sequence[str]) -> Catalog:
    lecturer_rows = _grouped(workbook.lecturers, "Lecturer ID")
    room_rows = _grouped(workbook.rooms, "Room Number")
    lecturers_by_course = _grouped(workbook.lecturers, "lecture Code")
    rooms_by_course = _grouped(workbook.rooms, "Course Code")

    courses = []
    for row in workbook.courses:
        code = _text(row.get("Course code"))
        if code is None:
            logger.warning("CATALOG IMPORT | skipped course row without a code | title=%s", row.get("Title"))
            continue
        courses.append(
            {
                "courseCode": code,
                "title": row.get("Title") or "",
                "length": row.get("Length"),
                "priority": row.get("Priority"),
                "availableBlocks": row.get("Available blocks"),
                "unavailableBlocks": row.get("Unavailable blocks"),
                "sectionSizes": {
                    "min": _int(row.get("Minimum section size")),
                    "target": _int(row.get("Target section size")),
                    "max": _int(row.get("Maximum section size")),
                },
                "numberOfSections": _int(row.get("Number of sections")),
                "totalCredits": _float(row.get("Total credits"), "Total credits"),
                "assignedRooms": _unique(r.get("Room Number") for r in rooms_by_course.get(code, [])),
                "lecturerIds": _unique(r.get("Lecturer ID") for r in lecturers_by_course.get(code, [])),
            }
        )

    lecturers = [
        {
            "lecturerId": lecturer_id,
            "courseCodes": _unique(r.get("lecture Code") for r in rows),
            "sections": [
                {
                    "courseCode": _text(r.get("lecture Code")) or "",
                    "sectionNumber": r.get("Section number"),
                    "startTerm": _text(r.get("Start Term")),
                }
                for r in rows
            ],
        }
        for lecturer_id, rows in lecturer_rows.items()
    ]

    rooms = [
        {
            "roomNumber": room_number,
            "assignedCourses": [
                {
                    "courseCode": _text(r.get("Course Code")) or "",
                    "courseTitle": _text(r.get("Course Title")),
                    "sectionNumber": r.get("Section number"),
                    "termName": _text(r.get("Term name")),
                }
                for r in rows
            ],
        }
        for room_number, rows in room_rows.items()
    ]

    students: dict[str, dict[str, Any]] = {}
    skipped = 0
    for row in workbook.requests:
        student_id = _text(row.get("student ID"))
        course_code = _text(row.get("Course code"))
        request_type = (_text(row.get("Type")) or "").capitalize()
        if student_id is None or course_code is None or request_type not in REQUEST_TYPE_VALUES:
            skipped += 1
            continue
        student = students.setdefault(
            student_id,
            {"studentId": student_id, "collegeYear": row.get("College Year"), "requests": []},
        )
        student["requests"].append(
            {
                "courseCode": course_code,
                "courseTitle": _text(row.get("Title")),
                "type": request_type,
                "startTerm": _text(row.get("Request start term")),
                "length": row.get("Length"),
                "priority": row.get("Priority"),
                "department": _text(row.get("Department(s)")),
                "credits": _float(row.get("Credits"), "Credits"),
            }
        )
    if skipped:
        logger.warning(
            "CATALOG IMPORT | skipped_request_rows=%s | reason=missing student ID, course code or request type",
            skipped,
        )

    try:
        catalog = Catalog.model_validate(
            {
                "blocks": list(blocks),
                "courses": courses,
                "lecturers": lecturers,
                "rooms": rooms,
                "students": list(students.values()),
            }
        )
    except ValidationError:
        logger.exception("CATALOG IMPORT FAILED | courses=%s | students=%s", len(courses), len(students))
        raise
    logger.info(
        "CATALOG IMPORT | courses=%s | lecturers=%s | rooms=%s | students=%s | requests=%s",
        len(catalog.courses),
        len(catalog.lecturers),
        len(catalog.rooms),
        len(catalog.students),
        catalog.request_count,
    )
    return catalog
