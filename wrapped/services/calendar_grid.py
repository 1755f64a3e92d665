from collections.abc import Iterable
from datetime import date
from datetime import timedelta

from wrapped.models import ActivityDay


COLOR_BREAKPOINTS = (0, 1, 3, 5, 10)

SHORT_MONTH_NAMES = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def color_level(count: int) -> int:
    """Map daily contribution count to a color bucket in range 0..4."""

    for level, breakpoint in enumerate(COLOR_BREAKPOINTS):
        if count <= breakpoint:
            return level
    return len(COLOR_BREAKPOINTS) - 1


def build_calendar_grid(
    days: Iterable[ActivityDay],
) -> tuple[list[dict[str, object]], list[dict[str, object]]]:
    """Group days into Sunday-started week columns and label month starts.

    Returns the week buckets and one label per month, placed at the index of
    the week holding that month's first observed day.
    """

    grouped_weeks: dict[date, list[ActivityDay]] = {}
    for day in days:
        week_start = day.date - timedelta(days=day.weekday)
        grouped_weeks.setdefault(week_start, []).append(day)

    weeks: list[dict[str, object]] = []
    month_labels: list[dict[str, object]] = []
    last_month: tuple[int, int] | None = None
    for week_index, week_start in enumerate(sorted(grouped_weeks)):
        week_days = sorted(grouped_weeks[week_start], key=lambda day: day.weekday)
        for day in week_days:
            month = (day.date.year, day.date.month)
            if month != last_month:
                month_labels.append(
                    {"week_index": week_index, "name": SHORT_MONTH_NAMES[day.date.month - 1]}
                )
                last_month = month

        weeks.append(
            {
                "week_start": week_start,
                "days": [
                    {
                        "date": day.date,
                        "weekday": day.weekday,
                        "count": day.count,
                        "level": color_level(day.count),
                    }
                    for day in week_days
                ],
            }
        )

    return weeks, month_labels
