from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

REQUIRED_ENTITY_LISTS = ("courses", "lecturers", "rooms", "students")


class RequestType(str, Enum):
    required = "Required"
    requested = "Requested"
    recommended = "Recommended"

    @property
    def weight(self) -> int:
        return REQUEST_TYPE_WEIGHTS[self]


REQUEST_TYPE_WEIGHTS = {
    RequestType.required: 3,
    RequestType.requested: 2,
    RequestType.recommended: 1,
}


def _as_id(value: Any) -> str:
    # Spreadsheet exports hand back room numbers and student ids as numbers.
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _as_id_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    cleaned = [_as_id(item) for item in value if item is not None]
    return [item for item in cleaned if item]


class CatalogModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SectionSizes(CatalogModel):
    min: int | None = Field(default=None, ge=0)
    target: int | None = Field(default=None, ge=0)
    max: int | None = Field(default=None, ge=0)


class Course(CatalogModel):
    course_code: str = Field(min_length=1)
    title: str = ""
    length: int | str | None = None
    priority: int | str | None = None
    available_blocks: tuple[str, ...] = ()
    unavailable_blocks: tuple[str, ...] = ()
    section_sizes: SectionSizes = Field(default_factory=SectionSizes)
    number_of_sections: int | None = None
    total_credits: float | None = None
    assigned_rooms: tuple[str, ...] = ()
    lecturer_ids: tuple[str, ...] = ()

    @field_validator("course_code", mode="before")
    @classmethod
    def clean_code(cls, value: Any) -> str:
        return _as_id(value)

    @field_validator("title", mode="before")
    @classmethod
    def clean_title(cls, value: Any) -> str:
        return str(value or "").strip()

    @field_validator("available_blocks", "unavailable_blocks", "assigned_rooms", "lecturer_ids", mode="before")
    @classmethod
    def clean_id_lists(cls, value: Any) -> list[str]:
        return _as_id_list(value)

    @property
    def section_count(self) -> int:
        if self.number_of_sections is None or self.number_of_sections < 1:
            return 1
        return self.number_of_sections


class LecturerSection(CatalogModel):
    course_code: str
    section_number: int | str | None = None
    start_term: str | None = None

    @field_validator("course_code", mode="before")
    @classmethod
    def clean_code(cls, value: Any) -> str:
        return _as_id(value)


class Lecturer(CatalogModel):
    lecturer_id: str = Field(min_length=1)
    course_codes: tuple[str, ...] = ()
    sections: tuple[LecturerSection, ...] = ()

    @field_validator("lecturer_id", mode="before")
    @classmethod
    def clean_id(cls, value: Any) -> str:
        return _as_id(value)

    @field_validator("course_codes", mode="before")
    @classmethod
    def clean_codes(cls, value: Any) -> list[str]:
        return _as_id_list(value)


class RoomOccupancy(CatalogModel):
    course_code: str
    course_title: str | None = None
    section_number: int | str | None = None
    term_name: str | None = None

    @field_validator("course_code", mode="before")
    @classmethod
    def clean_code(cls, value: Any) -> str:
        return _as_id(value)


class Room(CatalogModel):
    room_number: str = Field(min_length=1)
    assigned_courses: tuple[RoomOccupancy, ...] = ()

    @field_validator("room_number", mode="before")
    @classmethod
    def clean_number(cls, value: Any) -> str:
        return _as_id(value)


class CourseRequest(CatalogModel):
    course_code: str
    course_title: str | None = None
    request_type: RequestType = Field(alias="type")
    start_term: str | None = None
    length: int | str | None = None
    priority: int | str | None = None
    department: str | None = None
    credits: float | None = None

    @field_validator("course_code", mode="before")
    @classmethod
    def clean_code(cls, value: Any) -> str:
        return _as_id(value)

    @field_validator("request_type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().capitalize()
        return value


class Student(CatalogModel):
    student_id: str = Field(min_length=1)
    college_year: int | str | None = None
    requests: tuple[CourseRequest, ...] = ()

    @field_validator("student_id", mode="before")
    @classmethod
    def clean_id(cls, value: Any) -> str:
        return _as_id(value)


class Catalog(CatalogModel):
    """Normalized scheduling input: everything the engine reads, nothing it writes."""

    blocks: tuple[str, ...] | None = None
    courses: tuple[Course, ...]
    lecturers: tuple[Lecturer, ...]
    rooms: tuple[Room, ...]
    students: tuple[Student, ...]

    @model_validator(mode="before")
    @classmethod
    def require_entity_lists(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        missing = [name for name in REQUIRED_ENTITY_LISTS if data.get(name) is None]
        if missing:
            raise ValueError(f"Catalog is missing required entity list(s): {', '.join(missing)}")
        if data.get("blocks") is None:
            metadata = data.get("metadata")
            if isinstance(metadata, dict) and metadata.get("blocks"):
                data = {**data, "blocks": metadata["blocks"]}
        return data

    @field_validator("blocks", mode="before")
    @classmethod
    def clean_blocks(cls, value: Any) -> list[str] | None:
        if value is None:
            return None
        return _as_id_list(value) or None

    def course_map(self) -> dict[str, Course]:
        courses: dict[str, Course] = {}
        for course in self.courses:
            courses.setdefault(course.course_code, course)
        return courses

    @property
    def request_count(self) -> int:
        return sum(len(student.requests) for student in self.students)
