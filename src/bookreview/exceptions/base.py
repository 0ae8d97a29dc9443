"""
App-level exception carrying an already-sanitized message.
"""

from typing import Iterable

from .rules import ErrorCategory


class SafeError(Exception):
    """
    Error whose message is safe to show to the caller it was classified for.

    - message: sanitized, user-displayable text (a SafeMessage)
    - category: ErrorCategory the raw failure was classified into
    - fields: optional list of form field names related to the error (e.g., ['email'])

    The raw backend error is never stored here; it stays on __cause__ for logs.
    """

    # Map category -> HTTP status. Anything not listed is a server-side failure.
    CATEGORY_TO_STATUS = {
        ErrorCategory.AUTHENTICATION: 401,
        ErrorCategory.AUTHORIZATION: 403,
        ErrorCategory.VALIDATION: 422,
        ErrorCategory.CONSTRAINT: 409,
        ErrorCategory.CONNECTIVITY: 503,
        ErrorCategory.INTERNAL: 500,
    }

    def __init__(self, message: str, *, category: ErrorCategory = ErrorCategory.INTERNAL,
                 fields: Iterable[str] | None = None):
        super().__init__(message)
        self.message = message
        self.category = ErrorCategory(category)
        self.fields = list(fields) if fields else None

    def __str__(self) -> str:
        base = f"{self.message} (code: {self.category.value}"
        if self.fields:
            base += f"; fields: {', '.join(self.fields)}"
        return base + ")"

    def to_payload(self) -> dict:
        """
        JSON-serializable body for HTTP responses:
            {"detail": "...", "code": "constraint", "fields": ["slug"]}
        """
        payload = {"detail": self.message, "code": self.category.value}
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        return self.CATEGORY_TO_STATUS.get(self.category, 500)


__all__ = ["SafeError"]
