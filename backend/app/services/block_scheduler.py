from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from time import perf_counter

from app.core.exceptions import SchedulerError
from app.schemas.catalog import Catalog
from app.schemas.schedule import ScheduleResult
from app.schemas.scheduling import SchedulingOptions
from app.services.block_selector import BlockSelector
from app.services.constraint_matrix import ConstraintMatrix
from app.services.demand import prioritize_courses
from app.services.placement import StudentPlacement
from app.services.refinement import RefinementContext, build_refinement
from app.services.sections import AssignmentStore, SectionBuilder
from app.services.validation import validate_catalog
from app.services.views import build_lecturer_schedules, build_student_schedules, compute_statistics

logger = logging.getLogger(__name__)


class BlockScheduler:
    """Runs one scheduling pass over a catalog.

    Phases run strictly in order: demand analysis, matrix initialization, per-course
    placement in priority order, refinement, then view generation. Later courses read
    the conflicts written by earlier ones, so the placement loop must stay sequential.
    All run state lives on the instance; nothing is shared between runs.
    """

    def __init__(
        self,
        *,
        catalog: Catalog,
        options: SchedulingOptions,
        default_blocks: Sequence[str] = (),
        rng: random.Random | None = None,
    ) -> None:
        self.catalog = catalog
        self.options = options
        self.blocks = list(catalog.blocks or default_blocks)
        if not self.blocks:
            raise SchedulerError("No scheduling blocks configured", details={"blocks": []})
        self.random = rng or random.Random(options.random_seed)
        self.store = AssignmentStore()
        self.matrix = ConstraintMatrix(catalog.course_map().values(), self.blocks)

    def _place_courses(self, warnings: list[str]) -> None:
        selector = BlockSelector(
            tie_break=self.options.tie_break,
            rng=self.random,
            conflict_aware=self.options.conflict_aware_selection,
        )
        builder = SectionBuilder(
            StudentPlacement(self.catalog),
            distribution=self.options.section_distribution,
            default_section_max=self.options.default_section_max,
        )
        for item in prioritize_courses(self.catalog):
            choice = selector.select(item.course_code, self.matrix)
            if choice.degraded:
                warnings.append(
                    f"Course {item.course_code} has no available block; placed at {choice.block}"
                )
            builder.build(item.course, choice.block, self.store, warnings)
            self.matrix.record_placement(item.course, choice.block)
            logger.debug(
                "COURSE PLACED | course=%s | score=%s | block=%s | candidates=%s",
                item.course_code,
                item.priority_score,
                choice.block,
                ",".join(choice.candidates),
            )

    def _student_requests(self) -> dict[str, list[str]]:
        requests: dict[str, list[str]] = {}
        for student in self.catalog.students:
            codes = requests.setdefault(student.student_id, [])
            for request in student.requests:
                if request.course_code not in codes:
                    codes.append(request.course_code)
        return requests

    def run(self) -> ScheduleResult:
        started = perf_counter()
        logger.info(
            "SCHEDULER RUN START | courses=%s | students=%s | requests=%s | blocks=%s | refinement=%s | seed=%s",
            len(self.catalog.courses),
            len(self.catalog.students),
            self.catalog.request_count,
            len(self.blocks),
            self.options.refinement_strategy,
            self.options.random_seed,
        )
        validation = validate_catalog(self.catalog, self.blocks)
        warnings = validation.warnings

        self._place_courses(warnings)

        context = RefinementContext(
            store=self.store,
            matrix=self.matrix,
            weights=self.options.conflict_weights,
            student_requests=self._student_requests(),
            warnings=warnings,
        )
        refinement = build_refinement(self.options, self.random).run(context)
        logger.info(
            "REFINEMENT COMPLETE | strategy=%s | iterations=%s | accepted=%s | converged=%s | score=%s->%s",
            refinement.strategy,
            refinement.iterations,
            refinement.accepted,
            refinement.converged,
            refinement.initial_conflict_score,
            refinement.final_conflict_score,
        )

        student_schedules = build_student_schedules(self.catalog, self.store)
        teacher_schedules = build_lecturer_schedules(
            self.catalog,
            self.store,
            collision_policy=self.options.lecturer_collision_policy,
            warnings=warnings,
        )
        statistics = compute_statistics(self.catalog, self.store)
        runtime_ms = int((perf_counter() - started) * 1000)
        logger.info(
            "SCHEDULER RUN COMPLETE | resolved=%s/%s | rate=%s | warnings=%s | runtime_ms=%s",
            statistics.resolved_requests,
            statistics.total_requests,
            statistics.overall_resolution_rate,
            len(warnings),
            runtime_ms,
        )
        return ScheduleResult(
            blocks=self.blocks,
            assignments=self.store.to_payload(),
            student_schedules=student_schedules,
            teacher_schedules=teacher_schedules,
            statistics=statistics,
            validation=validation,
            refinement=refinement,
            options_used=self.options,
            runtime_ms=runtime_ms,
        )


def generate_schedule(
    catalog: Catalog,
    options: SchedulingOptions,
    *,
    default_blocks: Sequence[str] = (),
    rng: random.Random | None = None,
) -> ScheduleResult:
    return BlockScheduler(catalog=catalog, options=options, default_blocks=default_blocks, rng=rng).run()
