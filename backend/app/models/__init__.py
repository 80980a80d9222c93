from app.models.schedule_run import ScheduleRun  # noqa: F401
