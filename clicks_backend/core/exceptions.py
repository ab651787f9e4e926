"""
Domain errors raised by services and workflows.

Each error carries the HTTP status it maps to so the exception handler in
main.py can render it without a lookup table.
"""

from typing import Any, Dict, List, Optional


class ClicksError(Exception):
    status_code: int = 500
    title: str = "Error"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message}


class ValidationError(ClicksError):
    """Field-level input errors. Never reaches the backend."""

    status_code = 422
    title = "Invalid input"

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        super().__init__("; ".join(f"{e['field']}: {e['message']}" for e in errors))

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        """Collapse a pydantic ValidationError to one message per field."""
        errors: List[Dict[str, str]] = []
        seen = set()
        for err in exc.errors():
            field = ".".join(str(p) for p in err.get("loc", ())) or "__root__"
            if field in seen:
                continue
            seen.add(field)
            errors.append({"field": field, "message": err.get("msg", "Invalid value")})
        return cls(errors)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": "Validation failed", "errors": self.errors}


class Unauthenticated(ClicksError):
    status_code = 401
    title = "Not signed in"

    def __init__(self, message: str = "You must be logged in to perform this action"):
        super().__init__(message)


class Forbidden(ClicksError):
    status_code = 403
    title = "Not allowed"


class NotFound(ClicksError):
    status_code = 404
    title = "Not found"


class InvalidTransition(ClicksError):
    status_code = 409
    title = "Invalid state"


class ClickCreationFailed(ClicksError):
    """The click row itself could not be written. Nothing was persisted."""

    status_code = 502
    title = "Error"


class PartialFailure(ClicksError):
    """Some writes of a multi-step operation succeeded, a later one failed."""

    status_code = 207
    title = "Partially created"

    def __init__(
        self,
        message: str,
        click: Optional[Any] = None,
        compensated: bool = False,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, cause)
        self.click = click
        self.compensated = compensated

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "compensated": self.compensated}


class StorageUploadFailed(ClicksError):
    status_code = 502
    title = "Upload failed"


class Conflict(ClicksError):
    status_code = 409
    title = "Conflict"


class BackendError(ClicksError):
    """A Supabase call failed outside of a workflow."""

    status_code = 502
    title = "Error"
