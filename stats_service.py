from __future__ import annotations
import datetime
from typing import Dict, List, Optional

from db import AsyncWorkoutRepository
from models import PersonalRecord, Workout, WorkoutStatus
from algorithms import MathTools, WeightConverter, WorkoutMath


class StatisticsService:
    """Compute workout history statistics for analysis."""

    def __init__(
        self,
        workout_repo: AsyncWorkoutRepository,
        weight_unit: str = "kg",
    ) -> None:
        self.workouts = workout_repo
        self.weight_unit = weight_unit

    async def _completed(self, user_id: str) -> List[Workout]:
        return await self.workouts.get_workouts(
            user_id, status=WorkoutStatus.COMPLETED
        )

    async def overview(self, user_id: str) -> Dict[str, object]:
        """Return headline statistics with display strings in the user's unit."""
        stats = await self.workouts.get_workout_stats(user_id)
        data = stats.to_dict()
        data["formatted_total_volume"] = WeightConverter.format_volume(
            stats.total_volume, self.weight_unit
        )
        data["weight_unit"] = self.weight_unit
        return data

    async def weekly_volume(
        self,
        user_id: str,
        weeks: int = 4,
        today: Optional[datetime.date] = None,
    ) -> List[Dict[str, object]]:
        """Completed volume per ISO week, oldest week first, zero-filled."""
        if weeks <= 0:
            raise ValueError("weeks must be positive")
        today = today or datetime.date.today()
        current = WorkoutMath.week_start(today)
        starts = [current - datetime.timedelta(weeks=i) for i in range(weeks - 1, -1, -1)]
        totals = {start: 0.0 for start in starts}
        for workout in await self._completed(user_id):
            start = WorkoutMath.week_start(workout.created_at.date())
            if start in totals:
                totals[start] += workout.total_volume
        return [
            {"week_start": start.isoformat(), "volume": totals[start]}
            for start in starts
        ]

    async def weekly_load_variability(
        self, user_id: str, weeks: int = 4, today: Optional[datetime.date] = None
    ) -> float:
        """Coefficient of variation of weekly volume; 0.0 means perfectly even."""
        rows = await self.weekly_volume(user_id, weeks, today)
        return MathTools.coefficient_of_variation(r["volume"] for r in rows)

    async def body_part_distribution(self, user_id: str) -> Dict[str, float]:
        volumes = await self.workouts.get_volume_by_body_part(user_id)
        total = sum(volumes.values())
        if total == 0:
            return {}
        return {part: vol / total for part, vol in volumes.items()}

    async def personal_records(self, user_id: str) -> List[PersonalRecord]:
        """Best weight, single-set volume and reps per exercise."""
        best: Dict[tuple[str, str], PersonalRecord] = {}
        # oldest first so the earliest workout keeps a tied record
        for workout in reversed(await self._completed(user_id)):
            achieved = workout.completed_at or workout.created_at
            for exercise in workout.exercises:
                for workout_set in exercise.sets:
                    candidates = {
                        "weight": workout_set.weight,
                        "volume": workout_set.volume,
                        "reps": float(workout_set.reps),
                    }
                    for record_type, value in candidates.items():
                        key = (exercise.exercise_id, record_type)
                        current = best.get(key)
                        if current is not None and current.value >= value:
                            continue
                        best[key] = PersonalRecord(
                            exercise_id=exercise.exercise_id,
                            exercise_name=exercise.exercise_name,
                            record_type=record_type,
                            value=value,
                            workout_id=workout.workout_id,
                            achieved_at=achieved,
                        )
        return sorted(best.values(), key=lambda r: (r.exercise_name, r.record_type))

    async def exercise_history(
        self, user_id: str, exercise_id: str
    ) -> List[Dict[str, object]]:
        """Per completed workout: top weight, volume and estimated 1RM, oldest first."""
        history = []
        for workout in reversed(await self._completed(user_id)):
            sets = [
                s
                for e in workout.exercises
                if e.exercise_id == exercise_id
                for s in e.sets
            ]
            if not sets:
                continue
            history.append(
                {
                    "workout_id": workout.workout_id,
                    "date": workout.created_at.date().isoformat(),
                    "top_weight": max(s.weight for s in sets),
                    "volume": MathTools.volume((s.weight, s.reps) for s in sets),
                    "est_1rm": round(
                        max(MathTools.epley_1rm(s.weight, s.reps) for s in sets), 2
                    ),
                }
            )
        return history
