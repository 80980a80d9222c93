from conftest import course, student

from app.services.validation import validate_catalog

BLOCKS = ["1A", "1B", "2A", "2B", "3", "4A", "4B"]


def test_report_lists_data_quality_problems(make_catalog):
    catalog = make_catalog(
        [
            course("A", lecturers=["L1"], rooms=["R1"]),
            course("B", lecturers=[], rooms=[]),
            course("C", lecturers=["L1", "L2"], rooms=["R2"], max_size=None),
        ],
        [student("S1", ("A", "Required"), ("Z1", "Required")), student("S2", ("Z1", "Requested"))],
    )

    report = validate_catalog(catalog, BLOCKS)

    assert report.missing_courses == ["Z1"]
    assert report.courses_without_rooms == ["B"]
    assert report.courses_without_lecturers == ["B"]
    assert report.courses_with_multiple_lecturers == ["C"]
    assert report.courses_missing_capacity == ["C"]


def test_oversubscribed_courses_sorted_by_demand_ratio(make_catalog):
    students = [student(f"S{n}", ("A", "Required"), ("B", "Requested")) for n in range(6)]
    catalog = make_catalog(
        [course("A", max_size=4), course("B", max_size=2), course("C", max_size=1)],
        students,
    )

    report = validate_catalog(catalog, BLOCKS)

    assert [item.course_code for item in report.oversubscribed_courses] == ["B", "A"]
    assert report.oversubscribed_courses[0].requests == 6
    assert report.oversubscribed_courses[0].capacity == 2
    assert report.oversubscribed_courses[0].ratio == 3.0


def test_unknown_blocks_and_duplicate_codes_become_warnings(make_catalog):
    catalog = make_catalog(
        [course("A", blocks=["1A", "9Z"]), course("A", blocks=["2A"])],
        [],
    )

    report = validate_catalog(catalog, BLOCKS)

    assert any("unknown block(s) 9Z" in message for message in report.warnings)
    assert any("Course code A appears more than once" in message for message in report.warnings)


def test_clean_catalog_produces_empty_report(make_catalog):
    catalog = make_catalog(
        [course("A", lecturers=["L1"], rooms=["R1"])],
        [student("S1", ("A", "Required"))],
    )

    report = validate_catalog(catalog, BLOCKS)

    assert report.missing_courses == []
    assert report.oversubscribed_courses == []
    assert report.warnings == []
