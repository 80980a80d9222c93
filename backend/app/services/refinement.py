"""Local-search refinement run after greedy placement.

A strategy walks the state machine ``seeking -> evaluating -> applying | rejecting``
until no selectable issue is left or the iteration budget runs out. Subclasses
supply the five hooks (select, propose, score, accept, apply); ``run`` owns the
loop, the cooling schedule and the best-known-state bookkeeping.
"""
from __future__ import annotations

import logging
import math
import random
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from app.schemas.schedule import RefinementReport
from app.schemas.scheduling import ConflictWeights, RefinementStrategyName, SchedulingOptions
from app.services.constraint_matrix import ConstraintMatrix
from app.services.sections import AssignmentStore

logger = logging.getLogger(__name__)

IssueKind = Literal["unresolved", "student_clash", "lecturer_clash", "room_clash"]


class RefinementPhase(str, Enum):
    seeking = "seeking"
    evaluating = "evaluating"
    applying = "applying"
    rejecting = "rejecting"
    done = "done"


@dataclass(frozen=True)
class Issue:
    kind: IssueKind
    subject: str
    course_code: str
    other_course_code: str | None = None


@dataclass(frozen=True)
class CandidateMove:
    course_code: str
    from_block: str
    to_block: str


@dataclass(frozen=True)
class ConflictBreakdown:
    student_clashes: int = 0
    lecturer_clashes: int = 0
    room_clashes: int = 0
    incompatible_blocks: int = 0

    def score(self, weights: ConflictWeights) -> int:
        return (
            self.student_clashes * weights.student_clash
            + self.lecturer_clashes * weights.lecturer_clash
            + self.room_clashes * weights.room_clash
            + self.incompatible_blocks * weights.incompatible_block
        )


def _courses_by_block(pairs: dict[str, dict[str, set[str]]]) -> int:
    clashes = 0
    for by_block in pairs.values():
        for courses in by_block.values():
            clashes += max(0, len(courses) - 1)
    return clashes


class RefinementContext:
    """Read/write view over one run's assignment state for the refinement loop."""

    def __init__(
        self,
        *,
        store: AssignmentStore,
        matrix: ConstraintMatrix,
        weights: ConflictWeights,
        student_requests: dict[str, list[str]],
        warnings: list[str] | None = None,
    ) -> None:
        self.store = store
        self.matrix = matrix
        self.weights = weights
        self.student_requests = student_requests
        self.warnings = warnings if warnings is not None else []

    def _occupancy(self) -> tuple[dict, dict, dict]:
        students: dict[str, dict[str, set[str]]] = defaultdict(lambda: defaultdict(set))
        lecturers: dict[str, dict[str, set[str]]] = defaultdict(lambda: defaultdict(set))
        rooms: dict[str, dict[str, set[str]]] = defaultdict(lambda: defaultdict(set))
        for section in self.store.sections():
            for student_id in section.students:
                students[student_id][section.block].add(section.course_code)
            if section.lecturer:
                lecturers[section.lecturer][section.block].add(section.course_code)
            if section.room:
                rooms[section.room][section.block].add(section.course_code)
        return students, lecturers, rooms

    def breakdown(self) -> ConflictBreakdown:
        students, lecturers, rooms = self._occupancy()
        incompatible = 0
        for assignment in self.store:
            block = assignment.block
            if block is not None and self.matrix.cell(assignment.course_code, block).compatibility < 1:
                incompatible += 1
        return ConflictBreakdown(
            student_clashes=_courses_by_block(students),
            lecturer_clashes=_courses_by_block(lecturers),
            room_clashes=_courses_by_block(rooms),
            incompatible_blocks=incompatible,
        )

    def conflict_score(self) -> int:
        return self.breakdown().score(self.weights)

    def open_issues(self) -> list[Issue]:
        return self.unresolved_issues() + self.clash_issues()

    def unresolved_issues(self) -> list[Issue]:
        issues: list[Issue] = []
        for student_id, course_codes in self.student_requests.items():
            for course_code in course_codes:
                assignment = self.store.get(course_code)
                if assignment is None or assignment.section_of(student_id) is None:
                    issues.append(Issue(kind="unresolved", subject=student_id, course_code=course_code))
        return issues

    def clash_issues(self) -> list[Issue]:
        issues: list[Issue] = []
        students, lecturers, rooms = self._occupancy()
        for kind, occupancy in (
            ("student_clash", students),
            ("lecturer_clash", lecturers),
            ("room_clash", rooms),
        ):
            for subject, by_block in occupancy.items():
                for courses in by_block.values():
                    if len(courses) < 2:
                        continue
                    ordered = sorted(courses)
                    for other in ordered[1:]:
                        issues.append(Issue(kind=kind, subject=subject, course_code=ordered[0], other_course_code=other))
        return issues

    def apply(self, move: CandidateMove) -> None:
        course = self.matrix.courses[move.course_code]
        self.matrix.release(course, move.from_block)
        self.store.move_course(move.course_code, move.to_block)
        self.matrix.record_placement(course, move.to_block)

    def restore(self, layout: dict[str, str | None]) -> None:
        current = self.store.block_layout()
        for course_code, block in layout.items():
            if block is None or current.get(course_code) == block:
                continue
            self.apply(CandidateMove(course_code=course_code, from_block=current[course_code], to_block=block))


class RefinementStrategy(ABC):
    name: RefinementStrategyName

    def __init__(self, *, options: SchedulingOptions, rng: random.Random) -> None:
        self.options = options
        self.random = rng
        self.exhausted: set[Issue] = set()

    @abstractmethod
    def select_issue(self, context: RefinementContext) -> Issue | None: ...

    @abstractmethod
    def propose_move(self, issue: Issue, context: RefinementContext) -> CandidateMove | None: ...

    @abstractmethod
    def score_move(self, move: CandidateMove, context: RefinementContext) -> int: ...

    @abstractmethod
    def accept_move(self, delta: int, temperature: float) -> bool: ...

    @abstractmethod
    def apply_move(self, move: CandidateMove, context: RefinementContext) -> None: ...

    def run(self, context: RefinementContext) -> RefinementReport:
        temperature = self.options.refinement_initial_temperature
        budget = self.options.refinement_iterations
        initial_score = context.conflict_score()
        best_score = initial_score
        best_layout = context.store.block_layout()
        current_score = initial_score
        report = RefinementReport(strategy=self.name, initial_conflict_score=initial_score)
        phase = RefinementPhase.seeking

        while True:
            issue = self.select_issue(context)
            if issue is None:
                phase = RefinementPhase.done
                break
            if report.iterations >= budget:
                break
            move = self.propose_move(issue, context)
            if move is None:
                self.exhausted.add(issue)
                continue

            report.iterations += 1
            phase = RefinementPhase.evaluating
            delta = self.score_move(move, context)
            if self.accept_move(delta, temperature):
                phase = RefinementPhase.applying
                self.apply_move(move, context)
                current_score -= delta
                report.accepted += 1
                if context.matrix.cell(move.course_code, move.to_block).compatibility < 1:
                    logger.warning(
                        "REFINEMENT INCOMPATIBLE MOVE | course=%s | from=%s | to=%s",
                        move.course_code,
                        move.from_block,
                        move.to_block,
                    )
                    context.warnings.append(
                        f"Course {move.course_code} moved from {move.from_block} to {move.to_block}, "
                        "outside its available blocks"
                    )
                if current_score < best_score:
                    best_score = current_score
                    best_layout = context.store.block_layout()
            else:
                phase = RefinementPhase.rejecting
                report.rejected += 1
            logger.debug(
                "REFINEMENT STEP | iteration=%s | phase=%s | issue=%s | move=%s | delta=%s | temperature=%.4f",
                report.iterations,
                phase.value,
                issue.kind,
                move,
                delta,
                temperature,
            )
            phase = RefinementPhase.seeking
            temperature *= self.options.refinement_cooling_rate

        if current_score > best_score:
            context.restore(best_layout)
            current_score = best_score

        report.converged = phase is RefinementPhase.done
        report.exhausted = len(self.exhausted)
        report.final_conflict_score = current_score
        return report


class NoOpRefinement(RefinementStrategy):
    """Leaves the greedy assignment untouched and reports convergence."""

    name = "none"

    def run(self, context: RefinementContext) -> RefinementReport:
        score = context.conflict_score()
        return RefinementReport(
            strategy=self.name,
            converged=True,
            initial_conflict_score=score,
            final_conflict_score=score,
        )

    def select_issue(self, context: RefinementContext) -> Issue | None:
        return None

    def propose_move(self, issue: Issue, context: RefinementContext) -> CandidateMove | None:
        return None

    def score_move(self, move: CandidateMove, context: RefinementContext) -> int:
        return 0

    def accept_move(self, delta: int, temperature: float) -> bool:
        return False

    def apply_move(self, move: CandidateMove, context: RefinementContext) -> None:
        return None


class AnnealingRefinement(RefinementStrategy):
    """Moves clashing courses between blocks under a simulated-annealing acceptance rule.

    Requests left unresolved by capacity have no feasible move here: sections never
    shrink and section counts are fixed, so such issues are set aside as exhausted.
    """

    name = "annealing"

    def _pick(self, items: list):
        if self.options.tie_break == "first":
            return items[0]
        return self.random.choice(items)

    def __init__(self, *, options: SchedulingOptions, rng: random.Random) -> None:
        super().__init__(options=options, rng=rng)
        self._unresolved_collected = False

    def select_issue(self, context: RefinementContext) -> Issue | None:
        if not self._unresolved_collected:
            # Block moves never change enrollment, so these stay unresolved for the whole run.
            self.exhausted.update(context.unresolved_issues())
            self._unresolved_collected = True
        candidates = [issue for issue in context.clash_issues() if issue not in self.exhausted]
        if not candidates:
            return None
        return self._pick(candidates)

    def propose_move(self, issue: Issue, context: RefinementContext) -> CandidateMove | None:
        course_codes = [issue.course_code]
        if issue.other_course_code:
            course_codes.append(issue.other_course_code)
        options: list[CandidateMove] = []
        for course_code in course_codes:
            assignment = context.store.get(course_code)
            if assignment is None or assignment.block is None:
                continue
            current = assignment.block
            row = context.matrix.row(course_code)
            others = [block for block in context.matrix.blocks if block != current]
            compatible = [block for block in others if row[block].compatibility >= 1]
            if row[current].compatibility >= 1:
                targets = compatible
            else:
                # Already off its available blocks; any other block is no worse.
                targets = compatible or others
            for block in targets:
                options.append(CandidateMove(course_code=course_code, from_block=current, to_block=block))
        if not options:
            return None
        return self._pick(options)

    def score_move(self, move: CandidateMove, context: RefinementContext) -> int:
        before = context.conflict_score()
        context.store.move_course(move.course_code, move.to_block)
        try:
            after = context.conflict_score()
        finally:
            context.store.move_course(move.course_code, move.from_block)
        return before - after

    def accept_move(self, delta: int, temperature: float) -> bool:
        if delta > 0:
            return True
        if delta == 0:
            return False
        probability = math.exp(delta / max(temperature, 1e-9))
        return self.random.random() < probability

    def apply_move(self, move: CandidateMove, context: RefinementContext) -> None:
        context.apply(move)


REFINEMENT_STRATEGIES: dict[str, type[RefinementStrategy]] = {
    NoOpRefinement.name: NoOpRefinement,
    AnnealingRefinement.name: AnnealingRefinement,
}


def build_refinement(options: SchedulingOptions, rng: random.Random) -> RefinementStrategy:
    return REFINEMENT_STRATEGIES[options.refinement_strategy](options=options, rng=rng)
