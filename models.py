"""Workout entities shared by the store, the API and the statistics code.

Every entity is an immutable value object. Use ``copy_with`` to derive a
modified instance and ``to_row``/``from_row`` to move between entities and
SQLite rows. ``to_dict``/``from_dict`` provide the JSON representation.
"""
from __future__ import annotations

import dataclasses
import json
import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class WorkoutStatus(str, Enum):
    """Lifecycle state of a workout."""

    PLANNED = "planned"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def check_naive(name: str, value: Optional[datetime.datetime]) -> None:
    """Reject timezone-aware timestamps; stored text must sort lexically."""
    if value is not None and value.tzinfo is not None:
        raise ValueError(f"{name} must be a naive local timestamp")


def format_timestamp(value: Optional[datetime.datetime]) -> Optional[str]:
    """Serialize ``value`` with a fixed microsecond width so stored rows sort."""
    if value is None:
        return None
    check_naive("timestamp", value)
    return value.isoformat(timespec="microseconds")


def parse_timestamp(value: Optional[str]) -> Optional[datetime.datetime]:
    if value is None:
        return None
    return datetime.datetime.fromisoformat(value)


def join_tags(tags: List[str]) -> str:
    """Serialize ``tags`` as a JSON array so any tag text survives."""
    return json.dumps(list(tags))


def split_tags(value: Optional[str]) -> List[str]:
    if not value:
        return []
    if value.startswith("["):
        return [str(t) for t in json.loads(value)]
    # comma-joined text written by schema version 2 and earlier
    return [t.strip() for t in value.split(",") if t.strip()]


def child_row_id(parent_id: str, child_id: str, order_index: int) -> str:
    """Identifier of a child row, unambiguous for any parent and child ids.

    The length prefix fixes where ``parent_id`` ends, and ``order_index`` is
    an integer, so the last colon separates it from ``child_id``.
    """
    return f"{len(parent_id)}:{parent_id}:{child_id}:{order_index}"


class _CopyMixin:
    def copy_with(self, **changes):
        """Return a copy with ``changes`` applied; this instance is left as is."""
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class WorkoutSet(_CopyMixin):
    weight: float
    reps: int
    set_number: int
    workout_exercise_id: str
    is_completed: bool = False
    completed_at: Optional[datetime.datetime] = None
    notes: Optional[str] = None
    rest_time_seconds: Optional[int] = None

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.set_number < 1:
            raise ValueError("set_number is 1-based")
        check_naive("completed_at", self.completed_at)

    @property
    def volume(self) -> float:
        return self.weight * self.reps

    @property
    def formatted_weight(self) -> str:
        if float(self.weight).is_integer():
            return f"{int(self.weight)}kg"
        return f"{self.weight}kg"

    @property
    def summary(self) -> str:
        return f"{self.formatted_weight} × {self.reps} reps"

    def to_row(self) -> dict:
        return {
            "workout_exercise_id": self.workout_exercise_id,
            "set_number": self.set_number,
            "weight": float(self.weight),
            "reps": self.reps,
            "is_completed": 1 if self.is_completed else 0,
            "completed_at": format_timestamp(self.completed_at),
            "notes": self.notes,
            "rest_time_seconds": self.rest_time_seconds,
        }

    @classmethod
    def from_row(cls, row: dict) -> "WorkoutSet":
        return cls(
            weight=float(row["weight"]),
            reps=int(row["reps"]),
            set_number=int(row["set_number"]),
            workout_exercise_id=row["workout_exercise_id"],
            is_completed=bool(row["is_completed"]),
            completed_at=parse_timestamp(row.get("completed_at")),
            notes=row.get("notes"),
            rest_time_seconds=row.get("rest_time_seconds"),
        )

    def to_dict(self) -> dict:
        data = self.to_row()
        data["is_completed"] = self.is_completed
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutSet":
        return cls.from_row(data)


@dataclass(frozen=True)
class WorkoutExercise(_CopyMixin):
    exercise_id: str
    exercise_name: str
    body_parts: List[str]
    order_index: int
    workout_id: str
    sets: List[WorkoutSet] = field(default_factory=list)
    notes: Optional[str] = None

    @property
    def row_id(self) -> str:
        return child_row_id(self.workout_id, self.exercise_id, self.order_index)

    @property
    def total_volume(self) -> float:
        return sum((s.volume for s in self.sets), 0.0)

    @property
    def completed_sets(self) -> int:
        return len([s for s in self.sets if s.is_completed])

    @property
    def is_completed(self) -> bool:
        return bool(self.sets) and all(s.is_completed for s in self.sets)

    def add_set(self, weight: float, reps: int, **extra) -> "WorkoutExercise":
        """Return a copy with a new set appended and numbered after the last."""
        number = max((s.set_number for s in self.sets), default=0) + 1
        new_set = WorkoutSet(
            weight=weight,
            reps=reps,
            set_number=number,
            workout_exercise_id=self.row_id,
            **extra,
        )
        return self.copy_with(sets=list(self.sets) + [new_set])

    def moved_to(self, workout_id: str, order_index: Optional[int] = None) -> "WorkoutExercise":
        """Return a copy under ``workout_id`` with its sets re-parented."""
        moved = self.copy_with(
            workout_id=workout_id,
            order_index=self.order_index if order_index is None else order_index,
        )
        return moved.copy_with(
            sets=[s.copy_with(workout_exercise_id=moved.row_id) for s in self.sets]
        )

    def to_row(self) -> dict:
        return {
            "workout_exercise_id": self.row_id,
            "workout_id": self.workout_id,
            "exercise_id": self.exercise_id,
            "exercise_name": self.exercise_name,
            "body_parts": join_tags(self.body_parts),
            "notes": self.notes,
            "order_index": self.order_index,
        }

    @classmethod
    def from_row(
        cls, row: dict, sets: Optional[List[WorkoutSet]] = None
    ) -> "WorkoutExercise":
        return cls(
            exercise_id=row["exercise_id"],
            exercise_name=row["exercise_name"],
            body_parts=split_tags(row.get("body_parts")),
            order_index=int(row["order_index"]),
            workout_id=row["workout_id"],
            sets=list(sets or []),
            notes=row.get("notes"),
        )

    def to_dict(self) -> dict:
        data = self.to_row()
        data["body_parts"] = list(self.body_parts)
        data["sets"] = [s.to_dict() for s in self.sets]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutExercise":
        return cls(
            exercise_id=data["exercise_id"],
            exercise_name=data["exercise_name"],
            body_parts=list(data.get("body_parts") or []),
            order_index=int(data["order_index"]),
            workout_id=data["workout_id"],
            sets=[WorkoutSet.from_dict(s) for s in data.get("sets") or []],
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class Workout(_CopyMixin):
    workout_id: str
    user_id: str
    name: str
    target_body_parts: List[str]
    planned_duration_minutes: int
    created_at: datetime.datetime
    status: WorkoutStatus = WorkoutStatus.PLANNED
    started_at: Optional[datetime.datetime] = None
    completed_at: Optional[datetime.datetime] = None
    exercises: List[WorkoutExercise] = field(default_factory=list)
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        check_naive("created_at", self.created_at)
        check_naive("started_at", self.started_at)
        check_naive("completed_at", self.completed_at)

    @property
    def actual_duration(self) -> datetime.timedelta:
        if self.started_at is not None and self.completed_at is not None:
            return self.completed_at - self.started_at
        return datetime.timedelta(0)

    @property
    def is_completed(self) -> bool:
        return self.status == WorkoutStatus.COMPLETED

    @property
    def is_in_progress(self) -> bool:
        return self.status == WorkoutStatus.IN_PROGRESS

    @property
    def is_planned(self) -> bool:
        return self.status == WorkoutStatus.PLANNED

    @property
    def total_volume(self) -> float:
        return sum((e.total_volume for e in self.exercises), 0.0)

    @property
    def total_sets(self) -> int:
        return sum(len(e.sets) for e in self.exercises)

    @property
    def formatted_duration(self) -> str:
        if not self.actual_duration:
            return f"{self.planned_duration_minutes}min planned"
        minutes = int(self.actual_duration.total_seconds() // 60)
        return f"{minutes}min actual"

    def copy_as(self, workout_id: str) -> "Workout":
        """Return a copy stored under ``workout_id``, children included."""
        return self.copy_with(
            workout_id=workout_id,
            exercises=[e.moved_to(workout_id) for e in self.exercises],
        )

    def check_parents(self) -> None:
        """Raise ``ValueError`` unless every child points at its own parent."""
        seen = set()
        for exercise in self.exercises:
            if exercise.workout_id != self.workout_id:
                raise ValueError(
                    f"exercise {exercise.exercise_id} belongs to workout {exercise.workout_id!r}"
                )
            if exercise.row_id in seen:
                raise ValueError(
                    f"exercise {exercise.exercise_id} repeats order_index {exercise.order_index}"
                )
            seen.add(exercise.row_id)
            for workout_set in exercise.sets:
                if workout_set.workout_exercise_id != exercise.row_id:
                    raise ValueError(
                        f"set {workout_set.set_number} of {exercise.exercise_id} "
                        f"belongs to {workout_set.workout_exercise_id!r}"
                    )

    def to_row(self) -> dict:
        return {
            "workout_id": self.workout_id,
            "user_id": self.user_id,
            "name": self.name,
            "target_body_parts": join_tags(self.target_body_parts),
            "planned_duration_minutes": self.planned_duration_minutes,
            "created_at": format_timestamp(self.created_at),
            "started_at": format_timestamp(self.started_at),
            "completed_at": format_timestamp(self.completed_at),
            "status": WorkoutStatus(self.status).value,
            "notes": self.notes,
        }

    @classmethod
    def from_row(
        cls, row: dict, exercises: Optional[List[WorkoutExercise]] = None
    ) -> "Workout":
        return cls(
            workout_id=row["workout_id"],
            user_id=row["user_id"],
            name=row["name"],
            target_body_parts=split_tags(row.get("target_body_parts")),
            planned_duration_minutes=int(row["planned_duration_minutes"]),
            created_at=parse_timestamp(row["created_at"]),
            status=WorkoutStatus(row["status"]),
            started_at=parse_timestamp(row.get("started_at")),
            completed_at=parse_timestamp(row.get("completed_at")),
            exercises=list(exercises or []),
            notes=row.get("notes"),
        )

    def to_dict(self) -> dict:
        data = self.to_row()
        data["target_body_parts"] = list(self.target_body_parts)
        data["exercises"] = [e.to_dict() for e in self.exercises]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Workout":
        row = dict(data)
        row["target_body_parts"] = join_tags(data.get("target_body_parts") or [])
        row.setdefault("status", WorkoutStatus.PLANNED.value)
        exercises = [WorkoutExercise.from_dict(e) for e in data.get("exercises") or []]
        return cls.from_row(row, exercises=exercises)


class TemplateDifficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class TemplateCategory(str, Enum):
    CUSTOM = "custom"
    STRENGTH = "strength"
    CARDIO = "cardio"
    FULL_BODY = "fullBody"
    UPPER_BODY = "upperBody"
    LOWER_BODY = "lowerBody"
    PUSH = "push"
    PULL = "pull"
    LEGS = "legs"

    @property
    def display_name(self) -> str:
        return _CATEGORY_NAMES[self]


_CATEGORY_NAMES = {
    TemplateCategory.CUSTOM: "Custom",
    TemplateCategory.STRENGTH: "Strength",
    TemplateCategory.CARDIO: "Cardio",
    TemplateCategory.FULL_BODY: "Full Body",
    TemplateCategory.UPPER_BODY: "Upper Body",
    TemplateCategory.LOWER_BODY: "Lower Body",
    TemplateCategory.PUSH: "Push",
    TemplateCategory.PULL: "Pull",
    TemplateCategory.LEGS: "Legs",
}


@dataclass(frozen=True)
class TemplateExercise(_CopyMixin):
    """One exercise of a template with its suggested prescription."""

    exercise_id: str
    exercise_name: str
    body_parts: List[str]
    order_index: int
    template_id: str
    suggested_sets: int = 3
    suggested_reps_min: int = 8
    suggested_reps_max: int = 12
    suggested_weight: Optional[float] = None
    rest_time_seconds: int = 90
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.suggested_sets < 1:
            raise ValueError("suggested_sets must be positive")
        if not 0 <= self.suggested_reps_min <= self.suggested_reps_max:
            raise ValueError("suggested reps range is inverted")

    @property
    def row_id(self) -> str:
        return child_row_id(self.template_id, self.exercise_id, self.order_index)

    @property
    def suggested_reps_range(self) -> str:
        if self.suggested_reps_min == self.suggested_reps_max:
            return f"{self.suggested_reps_min} reps"
        return f"{self.suggested_reps_min}-{self.suggested_reps_max} reps"

    @property
    def formatted_suggested_weight(self) -> str:
        if self.suggested_weight is None:
            return "Bodyweight"
        if float(self.suggested_weight).is_integer():
            return f"{int(self.suggested_weight)}kg"
        return f"{self.suggested_weight:.1f}kg"

    def to_workout_exercise(self, workout_id: str) -> WorkoutExercise:
        """Planned exercise without sets, as placed into a new workout."""
        return WorkoutExercise(
            exercise_id=self.exercise_id,
            exercise_name=self.exercise_name,
            body_parts=list(self.body_parts),
            order_index=self.order_index,
            workout_id=workout_id,
            notes=self.notes,
        )

    def to_row(self) -> dict:
        return {
            "template_exercise_id": self.row_id,
            "template_id": self.template_id,
            "exercise_id": self.exercise_id,
            "exercise_name": self.exercise_name,
            "body_parts": join_tags(self.body_parts),
            "order_index": self.order_index,
            "suggested_sets": self.suggested_sets,
            "suggested_reps_min": self.suggested_reps_min,
            "suggested_reps_max": self.suggested_reps_max,
            "suggested_weight": self.suggested_weight,
            "rest_time_seconds": self.rest_time_seconds,
            "notes": self.notes,
        }

    @classmethod
    def from_row(cls, row: dict) -> "TemplateExercise":
        weight = row.get("suggested_weight")
        return cls(
            exercise_id=row["exercise_id"],
            exercise_name=row["exercise_name"],
            body_parts=split_tags(row.get("body_parts")),
            order_index=int(row["order_index"]),
            template_id=row["template_id"],
            suggested_sets=int(row.get("suggested_sets", 3)),
            suggested_reps_min=int(row.get("suggested_reps_min", 8)),
            suggested_reps_max=int(row.get("suggested_reps_max", 12)),
            suggested_weight=None if weight is None else float(weight),
            rest_time_seconds=int(row.get("rest_time_seconds", 90)),
            notes=row.get("notes"),
        )

    def to_dict(self) -> dict:
        data = self.to_row()
        data["body_parts"] = list(self.body_parts)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TemplateExercise":
        row = dict(data)
        row["body_parts"] = join_tags(data.get("body_parts") or [])
        return cls.from_row(row)


@dataclass(frozen=True)
class WorkoutTemplate(_CopyMixin):
    """Reusable workout plan that new workouts can be created from."""

    template_id: str
    user_id: str
    name: str
    target_body_parts: List[str]
    created_at: datetime.datetime
    updated_at: datetime.datetime
    description: Optional[str] = None
    estimated_duration_minutes: Optional[int] = None
    difficulty: TemplateDifficulty = TemplateDifficulty.BEGINNER
    category: TemplateCategory = TemplateCategory.CUSTOM
    is_favorite: bool = False
    last_used_at: Optional[datetime.datetime] = None
    usage_count: int = 0
    exercises: List[TemplateExercise] = field(default_factory=list)

    def __post_init__(self) -> None:
        check_naive("created_at", self.created_at)
        check_naive("updated_at", self.updated_at)
        check_naive("last_used_at", self.last_used_at)
        if self.usage_count < 0:
            raise ValueError("usage_count must be non-negative")

    @property
    def difficulty_name(self) -> str:
        return TemplateDifficulty(self.difficulty).display_name

    @property
    def category_name(self) -> str:
        return TemplateCategory(self.category).display_name

    def check_parents(self) -> None:
        seen = set()
        for exercise in self.exercises:
            if exercise.template_id != self.template_id:
                raise ValueError(
                    f"exercise {exercise.exercise_id} belongs to template {exercise.template_id!r}"
                )
            if exercise.row_id in seen:
                raise ValueError(
                    f"exercise {exercise.exercise_id} repeats order_index {exercise.order_index}"
                )
            seen.add(exercise.row_id)

    def to_workout(
        self,
        workout_id: str,
        user_id: str,
        created_at: datetime.datetime,
        name: Optional[str] = None,
    ) -> Workout:
        """Build a planned workout with this template's exercises and no sets."""
        return Workout(
            workout_id=workout_id,
            user_id=user_id,
            name=name or self.name,
            target_body_parts=list(self.target_body_parts),
            planned_duration_minutes=self.estimated_duration_minutes or 45,
            created_at=created_at,
            exercises=[e.to_workout_exercise(workout_id) for e in self.exercises],
            notes=self.description,
        )

    def to_row(self) -> dict:
        return {
            "template_id": self.template_id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "target_body_parts": join_tags(self.target_body_parts),
            "estimated_duration_minutes": self.estimated_duration_minutes,
            "difficulty": TemplateDifficulty(self.difficulty).value,
            "category": TemplateCategory(self.category).value,
            "is_favorite": 1 if self.is_favorite else 0,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "last_used_at": format_timestamp(self.last_used_at),
            "usage_count": self.usage_count,
        }

    @classmethod
    def from_row(
        cls, row: dict, exercises: Optional[List[TemplateExercise]] = None
    ) -> "WorkoutTemplate":
        duration = row.get("estimated_duration_minutes")
        return cls(
            template_id=row["template_id"],
            user_id=row["user_id"],
            name=row["name"],
            target_body_parts=split_tags(row.get("target_body_parts")),
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
            description=row.get("description"),
            estimated_duration_minutes=None if duration is None else int(duration),
            difficulty=TemplateDifficulty(row.get("difficulty") or "beginner"),
            category=TemplateCategory(row.get("category") or "custom"),
            is_favorite=bool(row.get("is_favorite")),
            last_used_at=parse_timestamp(row.get("last_used_at")),
            usage_count=int(row.get("usage_count") or 0),
            exercises=list(exercises or []),
        )

    def to_dict(self) -> dict:
        data = self.to_row()
        data["target_body_parts"] = list(self.target_body_parts)
        data["is_favorite"] = self.is_favorite
        data["difficulty_name"] = self.difficulty_name
        data["category_name"] = self.category_name
        data["exercises"] = [e.to_dict() for e in self.exercises]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutTemplate":
        row = {
            k: v
            for k, v in data.items()
            if k not in ("difficulty_name", "category_name", "exercises")
        }
        row["target_body_parts"] = join_tags(data.get("target_body_parts") or [])
        exercises = [TemplateExercise.from_dict(e) for e in data.get("exercises") or []]
        return cls.from_row(row, exercises=exercises)


@dataclass(frozen=True)
class TemplateStats:
    total_templates: int
    favorite_templates: int
    total_usage: int
    average_usage: float
    used_templates: int

    @property
    def usage_rate(self) -> float:
        if self.total_templates == 0:
            return 0.0
        return self.used_templates / self.total_templates

    @property
    def formatted_usage_rate(self) -> str:
        return f"{self.usage_rate * 100:.0f}%"

    def to_dict(self) -> dict:
        return {
            "total_templates": self.total_templates,
            "favorite_templates": self.favorite_templates,
            "total_usage": self.total_usage,
            "average_usage": self.average_usage,
            "used_templates": self.used_templates,
            "usage_rate": self.usage_rate,
            "formatted_usage_rate": self.formatted_usage_rate,
        }


@dataclass(frozen=True)
class WorkoutStats:
    total_workouts: int
    completed_workouts: int
    total_volume: float
    average_duration_minutes: float

    @property
    def completion_rate(self) -> float:
        if self.total_workouts == 0:
            return 0.0
        return self.completed_workouts / self.total_workouts

    @property
    def formatted_total_volume(self) -> str:
        if self.total_volume >= 1000:
            return f"{self.total_volume / 1000:.1f}k kg"
        return f"{self.total_volume:.0f} kg"

    @property
    def formatted_avg_duration(self) -> str:
        return f"{self.average_duration_minutes:.0f}min"

    def to_dict(self) -> dict:
        return {
            "total_workouts": self.total_workouts,
            "completed_workouts": self.completed_workouts,
            "completion_rate": self.completion_rate,
            "total_volume": self.total_volume,
            "average_duration_minutes": self.average_duration_minutes,
            "formatted_total_volume": self.formatted_total_volume,
            "formatted_avg_duration": self.formatted_avg_duration,
        }


@dataclass(frozen=True)
class UserPreferences(_CopyMixin):
    default_weight_unit: str = "kg"
    default_rest_time: int = 90
    favorite_body_parts: List[str] = field(default_factory=list)
    sound_enabled: bool = True
    vibration_enabled: bool = True

    def to_row(self, user_id: str) -> dict:
        return {
            "user_id": user_id,
            "default_weight_unit": self.default_weight_unit,
            "default_rest_time": self.default_rest_time,
            "favorite_body_parts": join_tags(self.favorite_body_parts),
            "sound_enabled": 1 if self.sound_enabled else 0,
            "vibration_enabled": 1 if self.vibration_enabled else 0,
        }

    @classmethod
    def from_row(cls, row: dict) -> "UserPreferences":
        return cls(
            default_weight_unit=row.get("default_weight_unit") or "kg",
            default_rest_time=int(row.get("default_rest_time") or 90),
            favorite_body_parts=split_tags(row.get("favorite_body_parts")),
            sound_enabled=bool(row.get("sound_enabled", 1)),
            vibration_enabled=bool(row.get("vibration_enabled", 1)),
        )


def _xp_to_text(xp: Dict[str, int]) -> str:
    return ",".join(f"{k}:{v}" for k, v in xp.items())


def _xp_from_text(value: Optional[str]) -> Dict[str, int]:
    result: Dict[str, int] = {}
    if not value:
        return result
    for pair in value.split(","):
        parts = pair.split(":")
        if len(parts) != 2:
            continue
        try:
            result[parts[0].strip()] = int(parts[1].strip())
        except ValueError:
            result[parts[0].strip()] = 0
    return result


@dataclass(frozen=True)
class User(_CopyMixin):
    user_id: str
    name: str
    created_at: datetime.datetime
    last_active_at: datetime.datetime
    body_part_xp: Dict[str, int] = field(default_factory=dict)
    preferences: UserPreferences = field(default_factory=UserPreferences)

    def to_row(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "created_at": format_timestamp(self.created_at),
            "last_active_at": format_timestamp(self.last_active_at),
            "body_part_xp": _xp_to_text(self.body_part_xp),
        }

    @classmethod
    def from_row(
        cls, row: dict, preferences: Optional[UserPreferences] = None
    ) -> "User":
        return cls(
            user_id=row["user_id"],
            name=row["name"],
            created_at=parse_timestamp(row["created_at"]),
            last_active_at=parse_timestamp(row["last_active_at"]),
            body_part_xp=_xp_from_text(row.get("body_part_xp")),
            preferences=preferences or UserPreferences(),
        )


@dataclass(frozen=True)
class PersonalRecord:
    exercise_id: str
    exercise_name: str
    record_type: str
    value: float
    workout_id: str
    achieved_at: datetime.datetime

    def to_dict(self) -> dict:
        return {
            "exercise_id": self.exercise_id,
            "exercise_name": self.exercise_name,
            "record_type": self.record_type,
            "value": self.value,
            "workout_id": self.workout_id,
            "achieved_at": format_timestamp(self.achieved_at),
        }
