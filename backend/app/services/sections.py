from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from app.schemas.catalog import Course, SectionSizes
from app.schemas.schedule import CourseAssignmentPayload, SectionPayload
from app.schemas.scheduling import SectionDistribution

if TYPE_CHECKING:
    from app.services.placement import StudentPlacement

logger = logging.getLogger(__name__)


@dataclass
class Section:
    course_code: str
    section_number: int
    block: str
    room: str | None
    lecturer: str | None
    capacity: SectionSizes
    students: list[str] = field(default_factory=list)

    @property
    def max_size(self) -> int:
        return self.capacity.max or 0

    @property
    def enrolled_count(self) -> int:
        return len(self.students)

    @property
    def has_room(self) -> bool:
        return self.enrolled_count < self.max_size

    def enroll(self, student_id: str) -> None:
        if not self.has_room:
            raise ValueError(f"Section {self.course_code}-{self.section_number} is full")
        self.students.append(student_id)

    def to_payload(self) -> SectionPayload:
        return SectionPayload(
            section_number=self.section_number,
            block=self.block,
            room=self.room,
            lecturer=self.lecturer,
            students=list(self.students),
            capacity=self.capacity,
        )


@dataclass
class CourseAssignment:
    course_code: str
    title: str
    sections: list[Section] = field(default_factory=list)

    @property
    def block(self) -> str | None:
        return self.sections[0].block if self.sections else None

    @property
    def enrolled_count(self) -> int:
        return sum(section.enrolled_count for section in self.sections)

    def section_of(self, student_id: str) -> Section | None:
        for section in self.sections:
            if student_id in section.students:
                return section
        return None

    def to_payload(self) -> CourseAssignmentPayload:
        return CourseAssignmentPayload(
            course_code=self.course_code,
            title=self.title,
            sections=[section.to_payload() for section in self.sections],
        )


class AssignmentStore:
    """The one mutable collection threaded through a scheduling run: course code -> placed sections."""

    def __init__(self) -> None:
        self._courses: dict[str, CourseAssignment] = {}

    def __contains__(self, course_code: object) -> bool:
        return course_code in self._courses

    def __iter__(self) -> Iterator[CourseAssignment]:
        return iter(self._courses.values())

    def __len__(self) -> int:
        return len(self._courses)

    def get(self, course_code: str) -> CourseAssignment | None:
        return self._courses.get(course_code)

    def add(self, assignment: CourseAssignment) -> CourseAssignment:
        self._courses[assignment.course_code] = assignment
        return assignment

    def sections(self) -> Iterator[Section]:
        for assignment in self._courses.values():
            yield from assignment.sections

    def block_layout(self) -> dict[str, str | None]:
        return {code: assignment.block for code, assignment in self._courses.items()}

    def move_course(self, course_code: str, block: str) -> None:
        for section in self._courses[course_code].sections:
            section.block = block

    def to_payload(self) -> dict[str, CourseAssignmentPayload]:
        return {code: assignment.to_payload() for code, assignment in self._courses.items()}


class SectionBuilder:
    def __init__(
        self,
        placement: StudentPlacement,
        *,
        distribution: SectionDistribution = "shared",
        default_section_max: int = 30,
    ) -> None:
        self.placement = placement
        self.distribution = distribution
        self.default_section_max = default_section_max

    def _capacity(self, course: Course, warnings: list[str]) -> SectionSizes:
        sizes = course.section_sizes
        if sizes.max is not None:
            return sizes
        message = (
            f"Course {course.course_code} has no maximum section size; "
            f"using default of {self.default_section_max}"
        )
        logger.warning("SECTION CAPACITY DEFAULTED | course=%s | max=%s", course.course_code, self.default_section_max)
        warnings.append(message)
        return sizes.model_copy(update={"max": self.default_section_max})

    def _resource(self, resources: tuple[str, ...], index: int) -> str | None:
        if not resources:
            return None
        if self.distribution == "round_robin":
            return resources[index % len(resources)]
        return resources[0]

    def build(self, course: Course, block: str, store: AssignmentStore, warnings: list[str]) -> CourseAssignment:
        capacity = self._capacity(course, warnings)
        assignment = CourseAssignment(course_code=course.course_code, title=course.title)
        for index in range(course.section_count):
            assignment.sections.append(
                Section(
                    course_code=course.course_code,
                    section_number=index + 1,
                    block=block,
                    room=self._resource(course.assigned_rooms, index),
                    lecturer=self._resource(course.lecturer_ids, index),
                    capacity=capacity,
                )
            )
        store.add(assignment)
        self.placement.place(assignment, warnings)
        return assignment
