import random

from conftest import course, student

from app.schemas.scheduling import ConflictWeights, SchedulingOptions
from app.services.block_scheduler import BlockScheduler
from app.services.refinement import (
    AnnealingRefinement,
    ConflictBreakdown,
    NoOpRefinement,
    build_refinement,
)

BLOCKS = ["1A", "1B", "2A"]


def _run(catalog, **option_overrides):
    options = SchedulingOptions(tie_break="first", random_seed=11, **option_overrides)
    scheduler = BlockScheduler(catalog=catalog, options=options, default_blocks=BLOCKS)
    return scheduler, scheduler.run()


def _shared_lecturer_catalog(make_catalog):
    return make_catalog(
        [
            course("A", blocks=["1A", "2A"], lecturers=["L1"]),
            course("B", blocks=["1A", "2A"], lecturers=["L1"]),
        ],
        [],
    )


def test_conflict_breakdown_applies_weights():
    breakdown = ConflictBreakdown(student_clashes=2, lecturer_clashes=1, room_clashes=0, incompatible_blocks=1)

    assert breakdown.score(ConflictWeights()) == 2 * 3 + 5 + 4


def test_build_refinement_resolves_strategy_by_name():
    rng = random.Random(0)

    assert isinstance(build_refinement(SchedulingOptions(refinement_strategy="none"), rng), NoOpRefinement)
    assert isinstance(build_refinement(SchedulingOptions(refinement_strategy="annealing"), rng), AnnealingRefinement)


def test_noop_refinement_leaves_lecturer_clash_in_place(make_catalog):
    scheduler, result = _run(_shared_lecturer_catalog(make_catalog), refinement_strategy="none")

    assert result.refinement.strategy == "none"
    assert result.refinement.converged
    assert result.refinement.iterations == 0
    assert result.refinement.initial_conflict_score == result.refinement.final_conflict_score == 5
    assert scheduler.store.block_layout() == {"A": "1A", "B": "1A"}


def test_annealing_moves_clashing_course_to_a_free_compatible_block(make_catalog):
    scheduler, result = _run(_shared_lecturer_catalog(make_catalog), refinement_strategy="annealing")

    assert result.refinement.converged
    assert result.refinement.accepted == 1
    assert result.refinement.initial_conflict_score == 5
    assert result.refinement.final_conflict_score == 0
    assert scheduler.store.block_layout() == {"A": "2A", "B": "1A"}
    assert scheduler.matrix.cell("B", "2A").teacher_conflicts == ["L1"]
    assert scheduler.matrix.cell("B", "1A").teacher_conflicts == []


def test_annealing_separates_student_clash(make_catalog):
    catalog = make_catalog(
        [course("A", blocks=["1A", "1B"]), course("B", blocks=["1A", "1B"])],
        [student("S1", ("A", "Required"), ("B", "Required"))],
    )

    scheduler, result = _run(catalog, refinement_strategy="annealing")

    layout = scheduler.store.block_layout()
    assert layout["A"] != layout["B"]
    assert result.refinement.final_conflict_score == 0
    assert len(result.student_schedules["S1"].assigned_courses) == 2


def test_capacity_unresolved_requests_are_exhausted(make_catalog):
    catalog = make_catalog(
        [course("A", max_size=1)],
        [student("S1", ("A", "Required")), student("S2", ("A", "Required"))],
    )

    _, result = _run(catalog, refinement_strategy="annealing")

    assert result.refinement.exhausted == 1
    assert result.refinement.iterations == 0
    assert result.refinement.converged


def test_zero_iteration_budget_with_nothing_to_fix_is_converged(make_catalog):
    catalog = make_catalog([course("A", blocks=["1A"]), course("B", blocks=["1B"])], [])

    _, result = _run(catalog, refinement_strategy="annealing", refinement_iterations=0)

    assert result.refinement.converged
    assert result.refinement.iterations == 0


def test_courses_stay_in_their_only_available_block(make_catalog):
    catalog = make_catalog(
        [course("A", blocks=["1A"]), course("B", blocks=["1A"])],
        [
            student("S1", ("A", "Required"), ("B", "Required")),
            student("S2", ("A", "Required"), ("B", "Required")),
        ],
    )

    scheduler, result = _run(catalog, refinement_strategy="annealing")

    assert scheduler.store.block_layout() == {"A": "1A", "B": "1A"}
    assert result.refinement.accepted == 0
    assert result.refinement.converged
    assert result.refinement.final_conflict_score == result.refinement.initial_conflict_score == 6


def test_move_outside_available_blocks_is_reported(make_catalog):
    catalog = make_catalog(
        [course("A", blocks=[]), course("B", blocks=["1A"])],
        [student("S1", ("B", "Required"), ("A", "Required"))],
    )

    scheduler, result = _run(catalog, refinement_strategy="annealing")

    assert scheduler.store.block_layout() == {"A": "1B", "B": "1A"}
    assert any(
        "Course A moved from 1A to 1B, outside its available blocks" in message
        for message in result.validation.warnings
    )


def test_zero_iteration_budget_stops_before_converging(make_catalog):
    scheduler, result = _run(
        _shared_lecturer_catalog(make_catalog),
        refinement_strategy="annealing",
        refinement_iterations=0,
    )

    assert not result.refinement.converged
    assert result.refinement.iterations == 0
    assert result.refinement.final_conflict_score == result.refinement.initial_conflict_score
    assert scheduler.store.block_layout() == {"A": "1A", "B": "1A"}


def test_annealing_acceptance_rule():
    strategy = AnnealingRefinement(options=SchedulingOptions(), rng=random.Random(5))

    assert strategy.accept_move(3, 1.0)
    assert not strategy.accept_move(0, 100.0)
    assert not strategy.accept_move(-1000, 0.01)
