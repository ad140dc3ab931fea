from marshmallow import ValidationError


def norm_lower(value):
    return value.strip().lower() if isinstance(value, str) else value


def norm_strip(value):
    return value.strip() if isinstance(value, str) else value


def not_blank(value: str) -> None:
    if value is None or not str(value).strip():
        raise ValidationError("Field may not be blank.")


def is_lowercase(value: str) -> None:
    if value != value.lower():
        raise ValidationError("Must be lowercase.")


def normalize_keys(data, keys, fn):
    """Apply fn to the given keys of a (possibly immutable) mapping payload."""
    if not isinstance(data, dict):
        return data
    data = dict(data)
    for key in keys:
        if key in data:
            data[key] = fn(data[key])
    return data
