"""Reporting-day grouping.

The business day closes at 16:00 local time: anything at or after the
cutoff is reported on the next calendar day. Input must already be sorted
newest-first; a new group opens whenever the reporting date changes, so
the output is newest-first too.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from core.models import DailyGroup, Transaction

DEFAULT_CUTOFF = time(16, 0)


def format_date_label(value: date) -> str:
    """Render a date as M/D/YYYY without zero padding (e.g. "1/5/2024")."""
    return f"{value.month}/{value.day}/{value.year}"


def date_range_label(groups: List[DailyGroup], today: Optional[date] = None) -> str:
    """Label spanning newest-first groups: "oldest" or "oldest - newest"."""
    if not groups:
        return format_date_label(today or date.today())
    newest = groups[0].date
    oldest = groups[-1].date
    return oldest if oldest == newest else f"{oldest} - {newest}"


class ReportingDayGrouper:
    """Partition newest-first transactions into reporting days."""

    def __init__(self, cutoff: time = DEFAULT_CUTOFF):
        self.cutoff = cutoff

    def reporting_date(self, timestamp: datetime) -> date:
        if timestamp.time() >= self.cutoff:
            return timestamp.date() + timedelta(days=1)
        return timestamp.date()

    def group(self, transactions: Iterable[Transaction]) -> List[DailyGroup]:
        groups: List[DailyGroup] = []
        current: Optional[DailyGroup] = None
        current_date: Optional[date] = None

        for txn in transactions:
            day = self.reporting_date(txn.timestamp)
            if current is None or day != current_date:
                if current is not None:
                    groups.append(current)
                current = DailyGroup(date=format_date_label(day))
                current_date = day
            current.append(txn)

        if current is not None:
            groups.append(current)

        return groups
