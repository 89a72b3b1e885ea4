from datetime import date, datetime
from gfm.errors import ValidationError


def parse_day(value, field_name="date"):
    """
    Normalise a date or ISO date/datetime string to a calendar day.
    The time of day, if any, is discarded.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        raise ValidationError(f"Missing {field_name}")

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid {field_name} format, use YYYY-MM-DD")
