"""
Error taxonomy shared by the record store API and the catalog client.

Each error knows the HTTP status the API answers with and a short machine code
used in JSON error bodies:

    {"detail": {"error": "<code>", "message": "...", "errors": [...]}}
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class CatalogError(Exception):
    """Base class for all catalog failures."""

    code = "unknown"
    status_code = 500

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors: List[str] = list(errors or [])

    # PUBLIC_INTERFACE
    def to_detail(self) -> Dict[str, Any]:
        """Return the JSON `detail` payload for this error."""
        detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.errors:
            detail["errors"] = list(self.errors)
        return detail

    def display_message(self) -> str:
        """Human readable message, with field-level messages appended."""
        if not self.errors:
            return self.message
        return f"{self.message}: {'; '.join(self.errors)}"


class InvalidInput(CatalogError):
    """A required field is missing or a value is malformed."""

    code = "invalid_input"
    status_code = 400


class Conflict(CatalogError):
    """Another record already uses the same (title, artist) pair."""

    code = "conflict"
    status_code = 409


class NotFound(CatalogError):
    """No record exists with the given id."""

    code = "not_found"
    status_code = 404


class Transport(CatalogError):
    """The store could not be reached."""

    code = "transport"
    status_code = 503


class Unknown(CatalogError):
    """Any failure that does not fit the other kinds."""

    code = "unknown"
    status_code = 500


_BY_STATUS = {
    400: InvalidInput,
    422: InvalidInput,
    404: NotFound,
    409: Conflict,
}


# PUBLIC_INTERFACE
def error_for_status(status_code: int, message: str, errors: Optional[List[str]] = None) -> CatalogError:
    """Build the catalog error matching an HTTP status code."""
    return _BY_STATUS.get(status_code, Unknown)(message, errors)
