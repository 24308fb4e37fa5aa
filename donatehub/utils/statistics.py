from datetime import date, datetime, timedelta

from donatehub.utils.exceptions import InvalidArgumentError

MAX_WINDOW_DAYS = 366


def window_start(days, today=None):
    """First day (inclusive) of a trailing window of ``days`` days ending today."""
    try:
        days = int(days)
    except (TypeError, ValueError):
        raise InvalidArgumentError("days must be an integer")
    if days < 1 or days > MAX_WINDOW_DAYS:
        raise InvalidArgumentError(f"days must be between 1 and {MAX_WINDOW_DAYS}")
    today = today or datetime.utcnow().date()
    return today - timedelta(days=days - 1)


def as_date(value):
    # sqlite hands back 'YYYY-MM-DD' strings, postgres hands back dates
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def fill_days(rows, start, end, empty):
    """Turn ``{day: point}`` rows into one point per day from start to end."""
    by_day = {as_date(day): point for day, point in rows}
    points = []
    day = start
    while day <= end:
        points.append(dict(day=day, **by_day.get(day, empty)))
        day += timedelta(days=1)
    return points
