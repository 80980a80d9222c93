from collections.abc import Iterable


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class CatalogError(AppError):
    """Raised when the input catalog is structurally malformed.

    Data-quality problems (unknown course codes, missing rooms) never raise;
    only a catalog lacking one of its required entity lists does.
    """
    def __init__(self, missing: Iterable[str], details: dict = None):
        self.missing = sorted(missing)
        message = f"Catalog is missing required entity list(s): {', '.join(self.missing)}"
        super().__init__(message, status_code=422, details={"missing": self.missing, **(details or {})})


class SchedulerError(AppError):
    """Raised when the scheduling engine is handed an unusable configuration."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class ResourceNotFoundError(AppError):
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)


class ConfigurationError(AppError):
    """Raised when environment settings cannot produce valid scheduling defaults."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
