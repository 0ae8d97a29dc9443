"""Book review site backend: trust-aware sanitization of backend error messages."""
