from datetime import date
from enum import Enum


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class RejectionReason(str, Enum):
    absent_is_candidate = "absent-is-candidate"
    ineligible_wing = "ineligible-wing"
    slot_conflict = "slot-conflict"
    workload_cap_exceeded = "workload-cap-exceeded"
    non_teaching_day = "non-teaching-day"


class ValidationRejected(AppError):
    """Raised when a candidate fails one of the commit checks. Nothing was written."""
    def __init__(self, reason: RejectionReason, message: str, details: dict = None):
        self.reason = reason
        payload = {"reason": reason.value}
        payload.update(details or {})
        super().__init__(message, status_code=422, details=payload)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class VacancyArchived(AppError):
    """Raised when a commit targets a vacancy that has been archived."""
    def __init__(self, vacancy_id: str):
        super().__init__(
            f"Substitution {vacancy_id} is archived and can no longer be assigned",
            status_code=409,
            details={"vacancy_id": vacancy_id},
        )


class PersistenceFailure(AppError):
    """Raised when the durable store rejects a write. The in-memory state is left untouched."""
    def __init__(self, operation: str, error: str):
        self.operation = operation
        self.error = error
        super().__init__(
            f"Persisting {operation} failed: {error}",
            status_code=503,
            details={"operation": operation, "error": error, "retryable": True},
        )


class ConfirmationRequired(AppError):
    """Raised when a destructive or batch-wide operation is called without explicit confirmation."""
    def __init__(self, operation: str, details: dict = None):
        payload = {"operation": operation}
        payload.update(details or {})
        super().__init__(
            f"{operation} is irreversible; repeat the request with confirm=true",
            status_code=428,
            details=payload,
        )


class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)


class AdvisoryUnavailable(AppError):
    """Raised when the suggestion service cannot be reached or answers with garbage."""
    def __init__(self, error: str):
        super().__init__(
            f"Suggestion service unavailable: {error}",
            status_code=502,
            details={"error": error},
        )


class TimetableConflict(AppError):
    """Raised when an import would put two regular entries in the same class period."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class NonTeachingDay(AppError):
    """Raised when a duty falls outside the Sunday..Thursday teaching week."""
    def __init__(self, day: str, value: date = None):
        details = {"day": day}
        if value is not None:
            details["date"] = value.isoformat()
        super().__init__(f"{day} is not a teaching day", status_code=422, details=details)
