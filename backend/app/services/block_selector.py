from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from app.schemas.scheduling import TieBreakPolicy
from app.services.constraint_matrix import ConstraintMatrix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockChoice:
    block: str
    score: int
    candidates: tuple[str, ...]
    degraded: bool = False


class BlockSelector:
    def __init__(
        self,
        *,
        tie_break: TieBreakPolicy = "random",
        rng: random.Random | None = None,
        conflict_aware: bool = False,
    ) -> None:
        self.tie_break = tie_break
        self.random = rng or random.Random()
        self.conflict_aware = conflict_aware

    def select(self, course_code: str, matrix: ConstraintMatrix) -> BlockChoice:
        best_score, candidates = matrix.best_blocks(course_code)
        if best_score < 1:
            # Unavailable everywhere: place at the first enumerated block rather than fail.
            fallback = matrix.blocks[0]
            logger.warning(
                "BLOCK SELECTION DEGRADED | course=%s | block=%s | reason=no compatible block",
                course_code,
                fallback,
            )
            return BlockChoice(block=fallback, score=best_score, candidates=(fallback,), degraded=True)

        if self.conflict_aware and len(candidates) > 1:
            fewest = min(matrix.cell(course_code, block).conflict_count for block in candidates)
            candidates = [block for block in candidates if matrix.cell(course_code, block).conflict_count == fewest]

        if self.tie_break == "first" or len(candidates) == 1:
            chosen = candidates[0]
        else:
            chosen = self.random.choice(candidates)
        return BlockChoice(block=chosen, score=best_score, candidates=tuple(candidates))
