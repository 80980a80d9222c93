from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from app.core.config import Settings
from app.core.exceptions import ConfigurationError
from app.schemas.catalog import Catalog

TieBreakPolicy = Literal["random", "first"]
RefinementStrategyName = Literal["none", "annealing"]
LecturerCollisionPolicy = Literal["first_wins", "last_wins"]
SectionDistribution = Literal["shared", "round_robin"]


class ConflictWeights(BaseModel):
    student_clash: int = Field(default=3, ge=0, le=1000)
    lecturer_clash: int = Field(default=5, ge=0, le=1000)
    room_clash: int = Field(default=5, ge=0, le=1000)
    incompatible_block: int = Field(default=4, ge=0, le=1000)


class SchedulingOptions(BaseModel):
    tie_break: TieBreakPolicy = "random"
    random_seed: int | None = Field(default=None, ge=0, le=2_000_000_000)
    refinement_strategy: RefinementStrategyName = "annealing"
    refinement_iterations: int = Field(default=100, ge=0, le=100_000)
    refinement_initial_temperature: float = Field(default=100.0, ge=0.01, le=100_000.0)
    refinement_cooling_rate: float = Field(default=0.95, ge=0.5, le=0.99999)
    lecturer_collision_policy: LecturerCollisionPolicy = "first_wins"
    section_distribution: SectionDistribution = "shared"
    conflict_aware_selection: bool = False
    default_section_max: int = Field(default=30, ge=1, le=10_000)
    conflict_weights: ConflictWeights = Field(default_factory=ConflictWeights)


def default_scheduling_options(settings: Settings) -> SchedulingOptions:
    try:
        return SchedulingOptions(
            tie_break=settings.tie_break,
            random_seed=settings.random_seed,
            refinement_strategy=settings.refinement_strategy,
            refinement_iterations=settings.refinement_iterations,
            refinement_initial_temperature=settings.refinement_initial_temperature,
            refinement_cooling_rate=settings.refinement_cooling_rate,
            lecturer_collision_policy=settings.lecturer_collision_policy,
            section_distribution=settings.section_distribution,
            conflict_aware_selection=settings.conflict_aware_selection,
            default_section_max=settings.default_section_max,
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid scheduling defaults in settings: {exc.errors()[0]['msg']}") from exc


class GenerateScheduleRequest(BaseModel):
    catalog: Catalog
    options: SchedulingOptions | None = None
    persist: bool = False
    label: str | None = Field(default=None, min_length=1, max_length=100)
