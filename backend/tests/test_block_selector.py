import random

from conftest import course

from app.schemas.catalog import Course
from app.services.block_selector import BlockSelector
from app.services.constraint_matrix import ConstraintMatrix

BLOCKS = ["1A", "1B", "2A", "2B", "3", "4A", "4B"]


def _matrix(*courses) -> ConstraintMatrix:
    return ConstraintMatrix([Course.model_validate(item) for item in courses], BLOCKS)


def test_selects_a_block_with_the_highest_score():
    matrix = _matrix(course("A", blocks=["2B", "4A"]))

    choice = BlockSelector(rng=random.Random(3)).select("A", matrix)

    assert choice.block in {"2B", "4A"}
    assert choice.score == 1
    assert set(choice.candidates) == {"2B", "4A"}
    assert not choice.degraded


def test_first_policy_takes_block_enumeration_order():
    matrix = _matrix(course("A", blocks=["4B", "1B", "3"]))

    choice = BlockSelector(tie_break="first").select("A", matrix)

    assert choice.block == "1B"


def test_seeded_random_tie_break_is_reproducible():
    matrix = _matrix(course("A", blocks=BLOCKS))

    first = BlockSelector(rng=random.Random(42))
    second = BlockSelector(rng=random.Random(42))

    picks_a = [first.select("A", matrix).block for _ in range(20)]
    picks_b = [second.select("A", matrix).block for _ in range(20)]
    assert picks_a == picks_b


def test_course_without_available_blocks_falls_back_to_first_block():
    matrix = _matrix(course("A", blocks=[]))

    choice = BlockSelector(rng=random.Random(1)).select("A", matrix)

    assert choice.block == "1A"
    assert choice.degraded
    assert choice.score == 0


def test_conflict_aware_selection_prefers_blocks_without_conflicts():
    course_a = course("A", blocks=["1A", "2A"], lecturers=["L1"])
    course_b = course("B", blocks=["1A"], lecturers=["L1"])
    matrix = _matrix(course_a, course_b)
    matrix.record_placement(matrix.courses["B"], "1A")

    plain = BlockSelector(tie_break="first").select("A", matrix)
    aware = BlockSelector(tie_break="first", conflict_aware=True).select("A", matrix)

    assert plain.block == "1A"
    assert aware.block == "2A"
    assert aware.candidates == ("2A",)
