"""Input validation errors."""

from __future__ import annotations

from assent.domain.exceptions import AssentError


class InputInvalidError(AssentError):
    """Raised when a required field is missing or malformed.

    Attributes:
        field: Name of the offending field, when one can be singled out.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable description of the problem.
            field: Name of the offending field (optional).
        """
        self.field = field
        super().__init__(message)
