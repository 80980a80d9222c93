"""Schedule a cleaned catalog file and write the three view files.

Run:
  PYTHONPATH=backend python scripts/run_schedule.py cleaned_data.json output/ --seed 7
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.schemas.scheduling import default_scheduling_options
from app.services.block_scheduler import generate_schedule
from app.services.ingestion import load_catalog

logger = logging.getLogger("scripts.run_schedule")

OUTPUT_FILES = {
    "student_schedules.json": "studentSchedules",
    "teacher_schedules.json": "teacherSchedules",
    "scheduling_stats.json": "statistics",
    "course_assignments.json": "assignments",
    "validation_report.json": "validation",
}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("input", type=Path, help="cleaned catalog JSON file")
    parser.add_argument("output", type=Path, help="folder for the generated JSON files")
    parser.add_argument("--seed", type=int, default=None, help="random seed for block tie-breaks")
    parser.add_argument("--refinement", choices=["none", "annealing"], default=None)
    parser.add_argument("--tie-break", choices=["random", "first"], default=None)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    configure_logging(settings)

    options = default_scheduling_options(settings)
    overrides = {
        "random_seed": args.seed,
        "refinement_strategy": args.refinement,
        "tie_break": args.tie_break,
    }
    options = options.model_copy(update={key: value for key, value in overrides.items() if value is not None})

    logger.info("Reading catalog from %s", args.input)
    catalog = load_catalog(json.loads(args.input.read_text(encoding="utf-8")))
    result = generate_schedule(catalog, options, default_blocks=settings.blocks)

    payload = result.model_dump(mode="json", by_alias=True)
    args.output.mkdir(parents=True, exist_ok=True)
    for filename, key in OUTPUT_FILES.items():
        (args.output / filename).write_text(json.dumps(payload[key], indent=2), encoding="utf-8")
        logger.info("Wrote %s", args.output / filename)


if __name__ == "__main__":
    main()
