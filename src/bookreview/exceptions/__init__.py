# bookreview/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py          # SafeError: app-level error carrying a sanitized message
# │   ├── rules.py         # TrustLevel, ErrorCategory, mapping table, sensitive patterns
# │   ├── classifier.py    # raw error + trust level -> safe message
# │   └── mapper.py        # db_error_handler: store failures -> SafeError

from .base import SafeError
from .rules import ErrorCategory, TrustLevel
from .classifier import (
    ErrorClassifier,
    classify,
    get_admin_error_message,
    get_safe_error_message,
)

__all__ = [
    "SafeError",
    "ErrorCategory",
    "TrustLevel",
    "ErrorClassifier",
    "classify",
    "get_safe_error_message",
    "get_admin_error_message",
]
