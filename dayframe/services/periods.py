"""
Report period boundaries and the date labels used in prompts.

Weeks start on Monday. All boundaries are inclusive calendar dates.
"""

import calendar
from datetime import date, datetime, timedelta


def week_bounds(day: date) -> tuple[date, date]:
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def month_bounds(day: date) -> tuple[date, date]:
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def quarter_of(day: date) -> int:
    return (day.month - 1) // 3 + 1


def quarter_bounds(day: date) -> tuple[date, date]:
    first_month = (quarter_of(day) - 1) * 3 + 1
    start = date(day.year, first_month, 1)
    end = month_bounds(date(day.year, first_month + 2, 1))[1]
    return start, end


def half_year_bounds(day: date) -> tuple[date, date]:
    if day.month <= 6:
        return date(day.year, 1, 1), date(day.year, 6, 30)
    return date(day.year, 7, 1), date(day.year, 12, 31)


def year_bounds(day: date) -> tuple[date, date]:
    return date(day.year, 1, 1), date(day.year, 12, 31)


PERIOD_BOUNDS = {
    "weekly": week_bounds,
    "monthly": month_bounds,
    "quarterly": quarter_bounds,
    "biannual": half_year_bounds,
    "yearly": year_bounds,
}


def period_bounds(report_type: str, day: date) -> tuple[date, date]:
    return PERIOD_BOUNDS[report_type](day)


# ── Labels ───────────────────────────────────────────────────────────

def long_date(day: date) -> str:
    """March 4, 2026"""
    return f"{calendar.month_name[day.month]} {day.day}, {day.year}"


def short_date(day: date) -> str:
    """Mar 4, 2026"""
    return f"{calendar.month_abbr[day.month]} {day.day}, {day.year}"


def month_label(day: date) -> str:
    """March 2026"""
    return f"{calendar.month_name[day.month]} {day.year}"


def quarter_label(day: date) -> str:
    """Q1 2026"""
    return f"Q{quarter_of(day)} {day.year}"


def clock_time(ts: datetime) -> str:
    """9:05 AM"""
    hour = ts.hour % 12 or 12
    return f"{hour}:{ts.minute:02d} {'AM' if ts.hour < 12 else 'PM'}"
