from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from app.schemas.catalog import Course

logger = logging.getLogger(__name__)


@dataclass
class ConstraintCell:
    compatibility: int
    teacher_conflicts: list[str] = field(default_factory=list)
    room_conflicts: list[str] = field(default_factory=list)

    @property
    def conflict_count(self) -> int:
        return len(self.teacher_conflicts) + len(self.room_conflicts)


class ConstraintMatrix:
    """Per (course, block) compatibility plus lecturer/room conflicts accumulated from placements.

    Conflict lists hold one entry per contributing placement, so a lecturer shared
    with two placed courses appears twice; ``release`` removes one contribution.
    """

    def __init__(self, courses: Iterable[Course], blocks: Sequence[str]) -> None:
        self.blocks = tuple(blocks)
        self.courses: dict[str, Course] = {}
        self._cells: dict[str, dict[str, ConstraintCell]] = {}
        for course in courses:
            if course.course_code in self.courses:
                continue
            self.courses[course.course_code] = course
            available = set(course.available_blocks)
            self._cells[course.course_code] = {
                block: ConstraintCell(compatibility=1 if block in available else 0) for block in self.blocks
            }

    def cell(self, course_code: str, block: str) -> ConstraintCell:
        return self._cells[course_code][block]

    def row(self, course_code: str) -> dict[str, ConstraintCell]:
        return self._cells[course_code]

    def __len__(self) -> int:
        return sum(len(row) for row in self._cells.values())

    def _shared_resources(self, course: Course, other: Course) -> tuple[list[str], list[str]]:
        other_lecturers = set(other.lecturer_ids)
        other_rooms = set(other.assigned_rooms)
        lecturers = [lecturer_id for lecturer_id in course.lecturer_ids if lecturer_id in other_lecturers]
        rooms = [room for room in course.assigned_rooms if room in other_rooms]
        return lecturers, rooms

    def record_placement(self, course: Course, block: str) -> None:
        for other_code, other in self.courses.items():
            if other_code == course.course_code:
                continue
            lecturers, rooms = self._shared_resources(course, other)
            if not lecturers and not rooms:
                continue
            target = self._cells[other_code][block]
            target.teacher_conflicts.extend(lecturers)
            target.room_conflicts.extend(rooms)
            logger.debug(
                "MATRIX UPDATE | placed=%s | block=%s | affected=%s | lecturers=%s | rooms=%s",
                course.course_code,
                block,
                other_code,
                lecturers,
                rooms,
            )

    def release(self, course: Course, block: str) -> None:
        for other_code, other in self.courses.items():
            if other_code == course.course_code:
                continue
            lecturers, rooms = self._shared_resources(course, other)
            target = self._cells[other_code][block]
            for lecturer_id in lecturers:
                if lecturer_id in target.teacher_conflicts:
                    target.teacher_conflicts.remove(lecturer_id)
            for room in rooms:
                if room in target.room_conflicts:
                    target.room_conflicts.remove(room)

    def best_blocks(self, course_code: str) -> tuple[int, list[str]]:
        row = self._cells[course_code]
        best_score = max((cell.compatibility for cell in row.values()), default=0)
        return best_score, [block for block, cell in row.items() if cell.compatibility == best_score]
