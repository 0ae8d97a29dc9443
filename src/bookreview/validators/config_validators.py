def normalize_case(value: str | None, *, upper: bool) -> str | None:
    """
    Strip and upper/lower-case an environment value, leaving None and non-strings alone.
    """
    if not isinstance(value, str):
        return value
    value = value.strip()
    return value.upper() if upper else value.lower()


def require_positive(value: int, name: str) -> int:
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return value
