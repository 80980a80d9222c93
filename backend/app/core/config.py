from functools import lru_cache
import json
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_BLOCKS = ["1A", "1B", "2A", "2B", "3", "4A", "4B"]


def _split_list(value: str | list[str]) -> list[str]:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("["):
            try:
                parsed = json.loads(stripped)
                if isinstance(parsed, list):
                    return [str(item).strip() for item in parsed if str(item).strip()]
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8")

    project_name: str = "Blockwise API"
    api_prefix: str = "/api"

    database_url: str = "sqlite+pysqlite:///./blockwise.db"
    log_level: str = "INFO"

    max_request_size_bytes: int = 10_000_000

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    blocks: list[str] = list(DEFAULT_BLOCKS)

    # Defaults for SchedulingOptions; a generation request may override any of them.
    tie_break: str = "random"
    random_seed: int | None = None
    refinement_strategy: str = "annealing"
    refinement_iterations: int = 100
    refinement_initial_temperature: float = 100.0
    refinement_cooling_rate: float = 0.95
    lecturer_collision_policy: str = "first_wins"
    section_distribution: str = "shared"
    conflict_aware_selection: bool = False
    default_section_max: int = 30

    @field_validator("cors_origins", "blocks", mode="before")
    @classmethod
    def split_lists(cls, value: str | list[str]) -> list[str]:
        return _split_list(value)


@lru_cache
def get_settings() -> Settings:
    return Settings()
