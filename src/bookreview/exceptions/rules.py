"""
Static rule tables used to turn raw backend errors into safe messages.

Everything in this module is built once at import time and never mutated:
    - MAPPING_TABLE: ordered (pattern -> safe message) rules
    - SENSITIVE_PATTERNS: detectors for internal-structure leakage (privileged mode only)
    - SQLSTATE_RULES: Postgres error code -> safe message, used when the text matched nothing

MAPPING_TABLE order is a priority order. Substring matching takes the first rule
whose pattern is contained in the message, so a specific phrase must come before
any general phrase it contains. `find_shadowed_rules()` reports violations.
"""

import re
from dataclasses import dataclass
from enum import Enum


class TrustLevel(str, Enum):
    """Redaction policy selector."""
    PUBLIC = "public"            # site visitors: maximal redaction
    PRIVILEGED = "privileged"    # admin dashboard: more detail, still no internals


class ErrorCategory(str, Enum):
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    CONSTRAINT = "constraint"
    CONNECTIVITY = "connectivity"
    INTERNAL = "internal"


@dataclass(frozen=True)
class MappingRule:
    pattern: str
    message: str
    category: ErrorCategory


# =================================================================================================================
# Safe messages
# =================================================================================================================

PERMISSION_DENIED_MESSAGE = "You don't have permission to perform this action."
ALREADY_EXISTS_MESSAGE = "This item already exists. Please use a different value."
LINKED_DATA_MESSAGE = "This item is linked to other data and cannot be modified."
INVALID_VALUE_MESSAGE = "The provided value is not valid."
MISSING_VALUE_MESSAGE = "A required value is missing."
CONNECTIVITY_MESSAGE = "Unable to connect. Please check your internet connection."
GENERIC_INTERNAL_MESSAGE = "A database error occurred. Please contact support if this persists."


# =================================================================================================================
# Mapping table
# =================================================================================================================

def _rules(category: ErrorCategory, *pairs: tuple[str, str]) -> tuple[MappingRule, ...]:
    return tuple(MappingRule(pattern, message, category) for pattern, message in pairs)


MAPPING_TABLE: tuple[MappingRule, ...] = (
    *_rules(
        ErrorCategory.AUTHENTICATION,
        ("Invalid login credentials", "Invalid email or password. Please try again."),
        ("Email not confirmed", "Please verify your email address before signing in."),
        ("User already registered", "This email is already registered. Please sign in instead."),
        ("Password should be at least 6 characters", "Password must be at least 6 characters long."),
        ("Email rate limit exceeded", "Too many attempts. Please wait a few minutes before trying again."),
        ("Signup is disabled", "Account registration is currently disabled."),
    ),
    *_rules(
        ErrorCategory.AUTHORIZATION,
        ("new row violates row-level security policy", PERMISSION_DENIED_MESSAGE),
        ("row-level security policy", PERMISSION_DENIED_MESSAGE),
    ),
    # Raised by the comment validation triggers; already safe, so they map to themselves.
    *_rules(
        ErrorCategory.VALIDATION,
        ("Author name must be 100 characters or less", "Author name must be 100 characters or less."),
        ("Comment must be 5000 characters or less", "Comment must be 5000 characters or less."),
        ("Email must be 255 characters or less", "Email must be 255 characters or less."),
        ("Please enter a valid email address", "Please enter a valid email address."),
        ("violates not-null constraint", MISSING_VALUE_MESSAGE),
        ("NOT NULL constraint failed", MISSING_VALUE_MESSAGE),
    ),
    # Postgres phrasing first, then SQLite phrasing.
    *_rules(
        ErrorCategory.CONSTRAINT,
        ("duplicate key value violates unique constraint", ALREADY_EXISTS_MESSAGE),
        ("violates foreign key constraint", LINKED_DATA_MESSAGE),
        ("violates check constraint", INVALID_VALUE_MESSAGE),
        ("UNIQUE constraint failed", ALREADY_EXISTS_MESSAGE),
        ("FOREIGN KEY constraint failed", LINKED_DATA_MESSAGE),
        ("CHECK constraint failed", INVALID_VALUE_MESSAGE),
    ),
    *_rules(
        ErrorCategory.CONNECTIVITY,
        ("TypeError: Failed to fetch", CONNECTIVITY_MESSAGE),
        ("Failed to fetch", CONNECTIVITY_MESSAGE),
        ("NetworkError", CONNECTIVITY_MESSAGE),
    ),
)

# Exact lookups are case-sensitive; first rule wins if a pattern were ever repeated.
EXACT_LOOKUP: dict[str, MappingRule] = {}
for _rule in MAPPING_TABLE:
    EXACT_LOOKUP.setdefault(_rule.pattern, _rule)
del _rule


# =================================================================================================================
# Sensitive patterns (privileged mode)
# =================================================================================================================

SENSITIVE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"column .+ does not exist", re.IGNORECASE),     # internal column name
    re.compile(r"relation .+ does not exist", re.IGNORECASE),   # internal table name
    re.compile(r"permission denied for", re.IGNORECASE),        # permission subject
    re.compile(r"syntax error at", re.IGNORECASE),              # raw SQL diagnostics
)


# =================================================================================================================
# Structured codes
# =================================================================================================================

# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"
    INSUFFICIENT_PRIVILEGE = "42501"


SQLSTATE_RULES: dict[str, MappingRule] = {
    PostgresErrorCodes.UNIQUE_VIOLATION.value: MappingRule(
        PostgresErrorCodes.UNIQUE_VIOLATION.value, ALREADY_EXISTS_MESSAGE, ErrorCategory.CONSTRAINT),
    PostgresErrorCodes.NOT_NULL_VIOLATION.value: MappingRule(
        PostgresErrorCodes.NOT_NULL_VIOLATION.value, MISSING_VALUE_MESSAGE, ErrorCategory.VALIDATION),
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION.value: MappingRule(
        PostgresErrorCodes.FOREIGN_KEY_VIOLATION.value, LINKED_DATA_MESSAGE, ErrorCategory.CONSTRAINT),
    PostgresErrorCodes.CHECK_VIOLATION.value: MappingRule(
        PostgresErrorCodes.CHECK_VIOLATION.value, INVALID_VALUE_MESSAGE, ErrorCategory.CONSTRAINT),
    PostgresErrorCodes.INSUFFICIENT_PRIVILEGE.value: MappingRule(
        PostgresErrorCodes.INSUFFICIENT_PRIVILEGE.value, PERMISSION_DENIED_MESSAGE, ErrorCategory.AUTHORIZATION),
}


# =================================================================================================================
# Table checks
# =================================================================================================================

def find_shadowed_rules(table: tuple[MappingRule, ...]) -> list[tuple[MappingRule, MappingRule]]:
    """
    Return (earlier, later) pairs where `later` can never win a substring match.

    `earlier` shadows `later` when its pattern is contained in `later`'s pattern
    (case-insensitively) and the two map to different messages. Same-message
    overlaps are harmless and not reported.
    """
    shadowed = []
    for i, earlier in enumerate(table):
        needle = earlier.pattern.lower()
        for later in table[i + 1:]:
            if needle in later.pattern.lower() and earlier.message != later.message:
                shadowed.append((earlier, later))
    return shadowed


__all__ = [
    "TrustLevel",
    "ErrorCategory",
    "MappingRule",
    "MAPPING_TABLE",
    "EXACT_LOOKUP",
    "SENSITIVE_PATTERNS",
    "SQLSTATE_RULES",
    "PostgresErrorCodes",
    "GENERIC_INTERNAL_MESSAGE",
    "find_shadowed_rules",
]
