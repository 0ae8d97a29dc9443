"""
Error classifier: raw backend error + trust level -> safe, user-displayable message.

Callers sit wherever a store or auth operation can fail (comment form, review
pages, admin dashboard) and hand over whatever they caught:

    message = get_safe_error_message(exc, "Failed to submit comment. Please try again.")
    message = get_admin_error_message(exc, "Failed to save review.")

Both conventions go through `ErrorClassifier.classify()`, parameterized by TrustLevel,
so the public and admin paths cannot drift apart.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from bookreview.config.settings import Settings, get_settings

from .rules import (
    EXACT_LOOKUP,
    GENERIC_INTERNAL_MESSAGE,
    MAPPING_TABLE,
    SENSITIVE_PATTERNS,
    SQLSTATE_RULES,
    ErrorCategory,
    MappingRule,
    TrustLevel,
)

logger = logging.getLogger(__name__)

# Unmatched public errors go here in development so they can be added to MAPPING_TABLE.
DIAGNOSTICS_LOGGER = "bookreview.diagnostics"

DEFAULT_PUBLIC_FALLBACK = "Something went wrong. Please try again."
DEFAULT_ADMIN_FALLBACK = "An error occurred."
DEFAULT_MAX_LENGTH = 200

_CODE_ATTRIBUTES = ("pgcode", "sqlstate", "code")


# -----------------------
# RawError extraction
# -----------------------

def extract_message(error: Any) -> str:
    """
    Best-effort extraction of the message text from a raw error.

    Accepts None, a bare string, a mapping with a "message" key (PostgREST / auth
    error payloads), an object exposing a string `.message`, or an exception.
    SQLAlchemy DBAPIError is unwrapped through `.orig` so the SQL statement and
    bound parameters that SQLAlchemy appends to str(exc) are never looked at.
    """
    if error is None:
        return ""
    if isinstance(error, str):
        return error
    if isinstance(error, Mapping):
        message = error.get("message")
        return message if isinstance(message, str) else ""

    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message

    orig = getattr(error, "orig", None)
    if orig is not None and orig is not error:
        return extract_message(orig)

    return str(error)


def extract_code(error: Any) -> str | None:
    """Return a structured error code (SQLSTATE or service code) if the error carries one."""
    if error is None or isinstance(error, str):
        return None
    if isinstance(error, Mapping):
        code = error.get("code")
        return str(code) if code is not None else None

    # A wrapper's own `.code` (SQLAlchemy's documentation code) is not the store's code.
    orig = getattr(error, "orig", None)
    if orig is not None and orig is not error:
        return extract_code(orig)

    for attr in _CODE_ATTRIBUTES:
        code = getattr(error, attr, None)
        if isinstance(code, (str, int)) and not isinstance(code, bool):
            return str(code)
    return None


# -----------------------
# Classifier
# -----------------------

@dataclass(frozen=True)
class Classification:
    """
    Result of classifying one raw error.

    `matched` names the step that produced the message:
    fallback | sensitive | exact | substring | code | passthrough
    """
    message: str
    category: ErrorCategory
    matched: str


class ErrorClassifier:
    """
    Pure translator from (error, trust level, fallback) to a safe message.

    The tables are passed in once and treated as read-only, so a single instance
    can be shared by every request without locking.
    """

    def __init__(
        self,
        table: tuple[MappingRule, ...] = MAPPING_TABLE,
        sensitive_patterns=SENSITIVE_PATTERNS,
        code_rules: Mapping[str, MappingRule] = SQLSTATE_RULES,
        *,
        max_length: int = DEFAULT_MAX_LENGTH,
        record_unmatched: bool = False,
        diagnostics: logging.Logger | None = None,
    ):
        if max_length <= 0:
            raise ValueError("max_length must be positive")
        self.table = tuple(table)
        self.sensitive_patterns = tuple(sensitive_patterns)
        self.code_rules = dict(code_rules)
        self.max_length = max_length
        self.record_unmatched = record_unmatched
        self.diagnostics = diagnostics or logging.getLogger(DIAGNOSTICS_LOGGER)

        if self.table is MAPPING_TABLE:
            self._exact = EXACT_LOOKUP
        else:
            self._exact = {}
            for rule in self.table:
                self._exact.setdefault(rule.pattern, rule)

    def classify(self, error: Any, trust_level: TrustLevel, fallback: str) -> str:
        return self.classify_detailed(error, trust_level, fallback).message

    def classify_detailed(self, error: Any, trust_level: TrustLevel, fallback: str) -> Classification:
        """
        Classify a raw error. Never raises; the fallback is returned if anything goes wrong.

        `fallback` must already be safe; it is returned as-is.
        """
        try:
            return self._classify(error, TrustLevel(trust_level), fallback)
        except Exception:
            # Keep the classifier total: a broken error object must not break the caller.
            logger.debug("classifier.internal_failure", exc_info=True)
            return Classification(fallback, ErrorCategory.INTERNAL, "fallback")

    def _classify(self, error: Any, trust_level: TrustLevel, fallback: str) -> Classification:
        message = extract_message(error)
        if not message:
            return Classification(fallback, ErrorCategory.INTERNAL, "fallback")

        privileged = trust_level is TrustLevel.PRIVILEGED

        # Sensitive detectors run before the table so internals never slip through
        # the more permissive admin path.
        if privileged and any(p.search(message) for p in self.sensitive_patterns):
            return Classification(GENERIC_INTERNAL_MESSAGE, ErrorCategory.INTERNAL, "sensitive")

        rule = self._exact.get(message)
        if rule is not None:
            return Classification(rule.message, rule.category, "exact")

        lowered = message.lower()
        for rule in self.table:
            if rule.pattern.lower() in lowered:
                return Classification(rule.message, rule.category, "substring")

        code = extract_code(error)
        if code is not None and code in self.code_rules:
            rule = self.code_rules[code]
            return Classification(rule.message, rule.category, "code")

        if privileged:
            return Classification(message[:self.max_length], ErrorCategory.INTERNAL, "passthrough")

        if self.record_unmatched:
            self.diagnostics.warning(
                "classifier.unmatched",
                extra={"raw_error": message, "error_code": code},
            )
        return Classification(fallback, ErrorCategory.INTERNAL, "fallback")


def build_classifier(settings: Settings) -> ErrorClassifier:
    """Classifier configured by `settings` (length bound, run-mode gated diagnostics)."""
    return ErrorClassifier(
        max_length=settings.ERROR_MESSAGE_MAX_LENGTH,
        record_unmatched=settings.record_unmatched_errors,
    )


@lru_cache()
def get_default_classifier() -> ErrorClassifier:
    """Build the process-wide classifier from settings (once)."""
    return build_classifier(get_settings())


# -----------------------
# Call conventions
# -----------------------

def default_fallback(trust_level: TrustLevel, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    if TrustLevel(trust_level) is TrustLevel.PRIVILEGED:
        return settings.ADMIN_FALLBACK_MESSAGE
    return settings.PUBLIC_FALLBACK_MESSAGE


def classify_detailed(
    error: Any,
    trust_level: TrustLevel = TrustLevel.PUBLIC,
    fallback: str | None = None,
    *,
    classifier: ErrorClassifier | None = None,
) -> Classification:
    if fallback is None:
        fallback = default_fallback(trust_level)
    return (classifier or get_default_classifier()).classify_detailed(error, trust_level, fallback)


def classify(
    error: Any,
    trust_level: TrustLevel = TrustLevel.PUBLIC,
    fallback: str | None = None,
    *,
    classifier: ErrorClassifier | None = None,
) -> str:
    return classify_detailed(error, trust_level, fallback, classifier=classifier).message


def get_safe_error_message(error: Any, fallback: str = DEFAULT_PUBLIC_FALLBACK) -> str:
    """Message for site visitors: mapped text or the fallback, never the raw error."""
    return classify(error, TrustLevel.PUBLIC, fallback)


def get_admin_error_message(error: Any, fallback: str = DEFAULT_ADMIN_FALLBACK) -> str:
    """
    Message for the admin dashboard.

    Admins may see unclassified error text (bounded in length), but column/relation
    names, permission subjects and SQL syntax diagnostics are still hidden.
    """
    return classify(error, TrustLevel.PRIVILEGED, fallback)


__all__ = [
    "Classification",
    "ErrorClassifier",
    "DIAGNOSTICS_LOGGER",
    "DEFAULT_PUBLIC_FALLBACK",
    "DEFAULT_ADMIN_FALLBACK",
    "extract_message",
    "extract_code",
    "build_classifier",
    "get_default_classifier",
    "default_fallback",
    "classify_detailed",
    "classify",
    "get_safe_error_message",
    "get_admin_error_message",
]
