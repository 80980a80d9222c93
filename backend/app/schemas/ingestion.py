from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field


class WorkbookRows(BaseModel):
    """Rows of the four workbook sheets, each row keyed by its column header."""

    lecturers: list[dict[str, Any]] = Field(validation_alias=AliasChoices("lecturers", "Lecturer Details"))
    rooms: list[dict[str, Any]] = Field(validation_alias=AliasChoices("rooms", "Rooms data"))
    courses: list[dict[str, Any]] = Field(validation_alias=AliasChoices("courses", "Course list"))
    requests: list[dict[str, Any]] = Field(validation_alias=AliasChoices("requests", "Student requests"))
    blocks: list[str] | None = None
