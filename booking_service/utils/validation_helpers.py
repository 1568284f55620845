def blank_to_none(value):
    """Treat empty strings the same as an absent field."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def normalize_room_number(value):
    # clients send room numbers both as JSON numbers and strings
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


def all_present(*values) -> bool:
    return all(value is not None and value != 0 and value != "" for value in values)
