"""
Date bucketing keys and named date-range presets.
"""

import re
import datetime as dt
from typing import Dict, Optional, Tuple

DATE_PREFIX = re.compile(r'(\d{4}-\d{2}-\d{2})(?:[T ]\S*)?$', re.ASCII)

GROUP_MODES = ('day', 'week', 'isoweek', 'month')

PRESET_LABELS = {
    'today': 'Today',
    'yesterday': 'Yesterday',
    'last7days': 'Last 7 Days',
    'last30days': 'Last 30 Days',
    'thisWeek': 'This Week',
    'lastWeek': 'Last Week',
    'thisMonth': 'This Month',
    'lastMonth': 'Last Month',
    'thisYear': 'This Year',
}
OPEN_PRESETS = ('all', 'custom')


def day_key(d: dt.date) -> str:
    return d.isoformat()


def month_key(d: dt.date) -> str:
    return d.strftime('%Y-%m')


def week_key(d: dt.date) -> str:
    """
    Week bucket counted within the date's calendar year.

    The date is moved to the Thursday of its Monday-based week and weeks are
    counted from January 1st of the original date's year, so the first days
    of January can land in week 0 and the last days of December in week 53.
    """
    thursday = d + dt.timedelta(days=3 - d.weekday())
    year_start = dt.date(d.year, 1, 1)
    days = (thursday - year_start).days + 1
    week_no = -(-days // 7)
    return f'{d.year}-W{week_no}'


def iso_week_key(d: dt.date) -> str:
    iso_year, iso_week, _ = d.isocalendar()
    return f'{iso_year}-W{iso_week:02d}'


def group_key(d: dt.date, mode: str) -> str:
    if mode == 'day':
        return day_key(d)
    if mode == 'week':
        return week_key(d)
    if mode == 'isoweek':
        return iso_week_key(d)
    if mode == 'month':
        return month_key(d)
    raise ValueError(f'Unknown grouping mode: {mode}')


def parse_date(value: str) -> dt.date:
    """Parse YYYY-MM-DD, tolerating a trailing time component after 'T' or a space."""
    match = DATE_PREFIX.match(value.strip())
    if not match:
        raise ValueError(f'Invalid date: {value!r}')
    return dt.datetime.strptime(match.group(1), '%Y-%m-%d').date()


# Range helpers
def start_of_week(d: dt.date) -> dt.date:
    return d - dt.timedelta(days=d.weekday())


def end_of_week(d: dt.date) -> dt.date:
    return start_of_week(d) + dt.timedelta(days=6)


def start_of_month(d: dt.date) -> dt.date:
    return d.replace(day=1)


def end_of_month(d: dt.date) -> dt.date:
    next_month = (d.replace(day=28) + dt.timedelta(days=4)).replace(day=1)
    return next_month - dt.timedelta(days=1)


def preset_ranges(today: dt.date) -> Dict[str, Tuple[dt.date, dt.date]]:
    yesterday = today - dt.timedelta(days=1)
    last_week = today - dt.timedelta(days=7)
    last_month = start_of_month(today) - dt.timedelta(days=1)
    return {
        'today': (today, today),
        'yesterday': (yesterday, yesterday),
        'last7days': (today - dt.timedelta(days=6), today),
        'last30days': (today - dt.timedelta(days=29), today),
        'thisWeek': (start_of_week(today), end_of_week(today)),
        'lastWeek': (start_of_week(last_week), end_of_week(last_week)),
        'thisMonth': (start_of_month(today), end_of_month(today)),
        'lastMonth': (start_of_month(last_month), end_of_month(last_month)),
        'thisYear': (dt.date(today.year, 1, 1), today),
    }


def preset_range(preset: str, today: Optional[dt.date] = None) -> Tuple[Optional[dt.date], Optional[dt.date]]:
    if preset in OPEN_PRESETS:
        return None, None
    ranges = preset_ranges(today or dt.date.today())
    if preset not in ranges:
        raise ValueError(f'Unknown date preset: {preset}')
    return ranges[preset]


def detect_preset(start: Optional[dt.date], end: Optional[dt.date],
                  today: Optional[dt.date] = None) -> str:
    if start is None and end is None:
        return 'all'
    for preset, bounds in preset_ranges(today or dt.date.today()).items():
        if bounds == (start, end):
            return preset
    return 'custom'


def _display(d: dt.date) -> str:
    return f'{d.day} {d.strftime("%b %Y")}'


def range_label(start: Optional[dt.date], end: Optional[dt.date], preset: str = 'custom') -> str:
    if preset == 'all' or (start is None and end is None):
        return 'All Time'
    if preset in PRESET_LABELS:
        return PRESET_LABELS[preset]
    if start and end:
        return f'{_display(start)} - {_display(end)}'
    if start:
        return f'From {_display(start)}'
    return f'Until {_display(end)}'
