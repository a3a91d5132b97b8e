from sudoku_api.errors import ValidationError
from sudoku_api.models import DIFFICULTIES


def require_int(data, key, label=None, minimum=0):
    """Pull a required non-negative integer out of a JSON payload."""
    label = label or key
    value = (data or {}).get(key)
    if value is None:
        raise ValidationError(f'{label} is required')
    if isinstance(value, bool):
        raise ValidationError(f'{label} must be an integer')
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f'{label} must be an integer')
        value = int(value)
    elif isinstance(value, str):
        if not value.strip().isdecimal():
            raise ValidationError(f'{label} must be an integer')
        value = int(value)
    elif not isinstance(value, int):
        raise ValidationError(f'{label} must be an integer')
    if minimum is not None and value < minimum:
        raise ValidationError(f'{label} must be at least {minimum}')
    return value


def require_difficulty(value):
    if value not in DIFFICULTIES:
        raise ValidationError('Difficulty must be easy, medium, or hard')
    return value


def parse_limit(raw, default, maximum):
    if raw is None or raw == '':
        return default
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        raise ValidationError('limit must be an integer') from None
    if limit < 1:
        raise ValidationError('limit must be at least 1')
    return min(limit, maximum)
