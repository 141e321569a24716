import datetime
from typing import Dict, Iterable, Optional, Tuple

from models import WorkoutStats, WorkoutStatus, parse_timestamp, split_tags


class WorkoutMath:
    """Aggregations over workout rows shared by the repository and services."""

    @staticmethod
    def duration_minutes(
        started_at: Optional[str],
        completed_at: Optional[str],
        planned_minutes: int,
    ) -> float:
        """Actual duration in minutes, or the planned duration when untimed."""
        start = parse_timestamp(started_at)
        end = parse_timestamp(completed_at)
        if start is None or end is None:
            return float(planned_minutes)
        return (end - start).total_seconds() / 60.0

    @classmethod
    def summarize_workouts(
        cls,
        rows: Iterable[Tuple[str, Optional[str], Optional[str], int, float]],
    ) -> WorkoutStats:
        """Fold ``(status, started_at, completed_at, planned_minutes, volume)`` rows.

        Counts every row, while volume and duration only accumulate for
        completed workouts. One pass, so the result reflects a single read.
        """
        total = 0
        completed = 0
        volume = 0.0
        minutes = 0.0
        for status, started_at, completed_at, planned, workout_volume in rows:
            total += 1
            if status != WorkoutStatus.COMPLETED.value:
                continue
            completed += 1
            volume += float(workout_volume or 0.0)
            minutes += cls.duration_minutes(started_at, completed_at, planned)
        return WorkoutStats(
            total_workouts=total,
            completed_workouts=completed,
            total_volume=volume,
            average_duration_minutes=minutes / completed if completed else 0.0,
        )

    @staticmethod
    def body_part_volume(rows: Iterable[Tuple[Optional[str], float]]) -> Dict[str, float]:
        """Credit each ``(body_parts, volume)`` row in full to every listed tag."""
        result: Dict[str, float] = {}
        for body_parts, volume in rows:
            for part in split_tags(body_parts):
                result[part] = result.get(part, 0.0) + float(volume or 0.0)
        return result

    @staticmethod
    def week_start(day: datetime.date) -> datetime.date:
        """Return the Monday of the ISO week containing ``day``."""
        return day - datetime.timedelta(days=day.weekday())
