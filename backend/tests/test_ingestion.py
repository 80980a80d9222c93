import pytest
from conftest import catalog_payload, course, student

from app.core.exceptions import CatalogError
from app.schemas.catalog import RequestType
from app.schemas.ingestion import WorkbookRows
from app.services.ingestion import catalog_from_rows, load_catalog

BLOCKS = ["1A", "1B", "2A", "2B", "3", "4A", "4B"]


def test_load_catalog_rejects_missing_entity_lists():
    data = catalog_payload([course("A")], [])
    del data["rooms"]

    with pytest.raises(CatalogError) as exc_info:
        load_catalog(data)

    assert exc_info.value.missing == ["rooms"]


def test_load_catalog_accepts_metadata_blocks():
    data = catalog_payload([course("A")], [student(7001, ("A", "required"))])
    data["metadata"] = {"blocks": ["1A", "1B"]}

    catalog = load_catalog(data)

    assert catalog.blocks == ("1A", "1B")
    assert catalog.students[0].student_id == "7001"
    assert catalog.students[0].requests[0].request_type is RequestType.required


def _workbook() -> WorkbookRows:
    return WorkbookRows.model_validate(
        {
            "Lecturer Details": [
                {"Lecturer ID": "L1", "lecture Code": "MATH1", "Section number": 1, "Start Term": "Fall"},
                {"Lecturer ID": "L1", "lecture Code": "BIO1", "Section number": 1, "Start Term": "Fall"},
            ],
            "Rooms data": [
                {"Room Number": 101, "Course Code": "MATH1", "Course Title": "Algebra", "Section number": 1},
            ],
            "Course list": [
                {
                    "Course code": "MATH1",
                    "Title": "Algebra",
                    "Available blocks": "1A, 2A",
                    "Maximum section size": "25",
                    "Number of sections": 2,
                },
                {"Course code": "BIO1", "Title": "Biology", "Available blocks": "3"},
                {"Course code": None, "Title": "Orphan"},
            ],
            "Student requests": [
                {"student ID": "S1", "College Year": 10, "Course code": "MATH1", "Title": "Algebra", "Type": "required"},
                {"student ID": "S1", "Course code": "BIO1", "Title": "Biology", "Type": "Recommended"},
                {"student ID": "S2", "Course code": "BIO1", "Type": "Optional"},
                {"student ID": None, "Course code": "BIO1", "Type": "Required"},
            ],
        }
    )


def test_catalog_from_rows_maps_sheet_columns():
    catalog = catalog_from_rows(_workbook(), BLOCKS)
    courses = catalog.course_map()

    assert list(courses) == ["MATH1", "BIO1"]
    math = courses["MATH1"]
    assert math.available_blocks == ("1A", "2A")
    assert math.section_sizes.max == 25
    assert math.section_count == 2
    assert math.lecturer_ids == ("L1",)
    assert math.assigned_rooms == ("101",)
    assert courses["BIO1"].assigned_rooms == ()

    assert [lecturer.lecturer_id for lecturer in catalog.lecturers] == ["L1"]
    assert catalog.lecturers[0].course_codes == ("MATH1", "BIO1")
    assert catalog.rooms[0].room_number == "101"
    assert catalog.blocks == tuple(BLOCKS)


def test_catalog_from_rows_skips_unusable_request_rows():
    catalog = catalog_from_rows(_workbook(), BLOCKS)

    assert [item.student_id for item in catalog.students] == ["S1"]
    requests = catalog.students[0].requests
    assert [(item.course_code, item.request_type) for item in requests] == [
        ("MATH1", RequestType.required),
        ("BIO1", RequestType.recommended),
    ]
    assert catalog.students[0].college_year == 10


def test_catalog_from_rows_blanks_unreadable_credit_cells(caplog):
    workbook = WorkbookRows.model_validate(
        {
            "Lecturer Details": [],
            "Rooms data": [],
            "Course list": [
                {"Course code": "MATH1", "Title": "Algebra", "Total credits": "N/A"},
                {"Course code": "BIO1", "Title": "Biology", "Total credits": "2.5"},
            ],
            "Student requests": [
                {"student ID": "S1", "Course code": "MATH1", "Type": "Required", "Credits": ""},
                {"student ID": "S1", "Course code": "BIO1", "Type": "Required", "Credits": "abc"},
            ],
        }
    )

    with caplog.at_level("WARNING", logger="app.services.ingestion"):
        catalog = catalog_from_rows(workbook, BLOCKS)

    courses = catalog.course_map()
    assert courses["MATH1"].total_credits is None
    assert courses["BIO1"].total_credits == 2.5
    assert [item.credits for item in catalog.students[0].requests] == [None, None]
    assert "column=Total credits" in caplog.text
    assert "column=Credits" in caplog.text
