import asyncio
import datetime

from db import (
    AsyncDatabase,
    AsyncTemplateRepository,
    AsyncUserRepository,
    AsyncWorkoutRepository,
)
from models import (
    TemplateCategory,
    TemplateDifficulty,
    TemplateExercise,
    Workout,
    WorkoutExercise,
    WorkoutStatus,
    WorkoutTemplate,
)


def sample_workouts(user_id: str, today: datetime.date | None = None) -> list[Workout]:
    """Build a small, realistic training history ending at ``today``."""
    today = today or datetime.date.today()
    plans = [
        ("Upper Body Push", ["chest", "shoulders"], [
            ("bench_press", "Bench Press", ["chest", "upper arms"], [(80.0, 10), (80.0, 8)]),
            ("overhead_press", "Overhead Press", ["shoulders"], [(40.0, 10), (40.0, 9)]),
        ]),
        ("Lower Body", ["upper legs"], [
            ("back_squat", "Back Squat", ["upper legs"], [(100.0, 8), (100.0, 8), (105.0, 6)]),
        ]),
        ("Pull Day", ["back"], [
            ("barbell_row", "Barbell Row", ["back"], [(60.0, 12), (60.0, 10)]),
        ]),
    ]
    workouts = []
    for i, (name, targets, exercises) in enumerate(plans):
        created = datetime.datetime.combine(
            today - datetime.timedelta(days=2 * (len(plans) - i)),
            datetime.time(18, 0),
        )
        workout_id = f"demo_{i + 1}"
        built = []
        for order, (ex_id, ex_name, parts, sets) in enumerate(exercises):
            exercise = WorkoutExercise(
                exercise_id=ex_id,
                exercise_name=ex_name,
                body_parts=parts,
                order_index=order,
                workout_id=workout_id,
            )
            for weight, reps in sets:
                exercise = exercise.add_set(weight, reps, is_completed=True)
            built.append(exercise)
        workouts.append(
            Workout(
                workout_id=workout_id,
                user_id=user_id,
                name=name,
                target_body_parts=targets,
                planned_duration_minutes=45,
                created_at=created,
                status=WorkoutStatus.COMPLETED,
                started_at=created,
                completed_at=created + datetime.timedelta(minutes=50),
                exercises=built,
            )
        )
    return workouts


async def seed(db_path: str = "liftlog.db") -> int:
    """Insert demo workouts for the local user unless some already exist."""
    async with AsyncDatabase(db_path) as store:
        users = AsyncUserRepository(store)
        workouts = AsyncWorkoutRepository(store)
        user_id = await users.ensure_mock_user()
        if await workouts.get_workouts(user_id, limit=1):
            return 0
        demo = sample_workouts(user_id)
        for workout in demo:
            await workouts.save_workout(workout)
        return len(demo)

SYSTEM_TEMPLATE_USER = "system_templates"

_DEFAULT_TEMPLATES = [
    ("chest_template", "Chest Focus",
     "Complete chest development with compound and isolation movements",
     ["chest", "shoulders", "upper arms"], TemplateCategory.PUSH, [
         ("bench_press", "Barbell Bench Press", ["chest", "upper arms"]),
         ("incline_dumbbell_press", "Incline Dumbbell Press", ["chest", "shoulders"]),
         ("cable_fly", "Cable Fly", ["chest"]),
     ]),
    ("upper_legs_template", "Upper Legs Power",
     "Quad and hamstring strength built around the squat",
     ["upper legs"], TemplateCategory.LEGS, [
         ("back_squat", "Barbell Back Squat", ["upper legs"]),
         ("romanian_deadlift", "Romanian Deadlift", ["upper legs", "back"]),
         ("leg_extension", "Leg Extension", ["upper legs"]),
     ]),
    ("back_template", "Back Builder",
     "Width and thickness from vertical and horizontal pulls",
     ["back", "upper arms"], TemplateCategory.PULL, [
         ("barbell_row", "Barbell Row", ["back"]),
         ("lat_pulldown", "Cable Lat Pulldown", ["back", "upper arms"]),
         ("seated_cable_row", "Seated Cable Row", ["back"]),
     ]),
    ("shoulders_template", "Shoulder Sculptor",
     "Pressing strength plus lateral and rear delt isolation",
     ["shoulders", "upper arms"], TemplateCategory.UPPER_BODY, [
         ("overhead_press", "Barbell Overhead Press", ["shoulders", "upper arms"]),
         ("lateral_raise", "Dumbbell Lateral Raise", ["shoulders"]),
         ("rear_delt_fly", "Rear Delt Fly", ["shoulders", "back"]),
     ]),
    ("arms_template", "Arm Destroyer",
     "Biceps, triceps and forearm volume",
     ["upper arms", "lower arms"], TemplateCategory.UPPER_BODY, [
         ("barbell_curl", "Barbell Curl", ["upper arms"]),
         ("triceps_extension", "Cable Triceps Extension", ["upper arms"]),
         ("wrist_curl", "Dumbbell Wrist Curl", ["lower arms"]),
     ]),
    ("push_template", "Push Day",
     "Chest, shoulders and triceps in one session",
     ["chest", "shoulders", "upper arms"], TemplateCategory.PUSH, [
         ("bench_press", "Barbell Bench Press", ["chest", "upper arms"]),
         ("overhead_press", "Barbell Overhead Press", ["shoulders", "upper arms"]),
         ("triceps_extension", "Cable Triceps Extension", ["upper arms"]),
     ]),
    ("pull_template", "Pull Day",
     "Back, biceps and grip in one session",
     ["back", "upper arms", "lower arms"], TemplateCategory.PULL, [
         ("deadlift", "Barbell Deadlift", ["back", "upper legs"]),
         ("barbell_row", "Barbell Row", ["back"]),
         ("barbell_curl", "Barbell Curl", ["upper arms"]),
     ]),
]


def suggested_prescription(exercise_name: str) -> tuple[int, int, int]:
    """Return ``(sets, reps_min, reps_max)`` for an exercise by movement type."""
    name = exercise_name.lower()
    heavy = any(k in name for k in ("squat", "deadlift", "bench press"))
    sets = 4 if heavy or "row" in name else 3
    if heavy:
        return sets, 6, 8
    if any(k in name for k in ("curl", "extension", "raise")):
        return sets, 10, 15
    return sets, 8, 12


def default_templates(now: datetime.datetime | None = None) -> list[WorkoutTemplate]:
    """Build the built-in templates owned by ``SYSTEM_TEMPLATE_USER``."""
    now = now or datetime.datetime.now()
    templates = []
    for template_id, name, description, targets, category, exercises in _DEFAULT_TEMPLATES:
        built = []
        for order, (ex_id, ex_name, parts) in enumerate(exercises):
            sets, reps_min, reps_max = suggested_prescription(ex_name)
            built.append(
                TemplateExercise(
                    exercise_id=ex_id,
                    exercise_name=ex_name,
                    body_parts=parts,
                    order_index=order,
                    template_id=template_id,
                    suggested_sets=sets,
                    suggested_reps_min=reps_min,
                    suggested_reps_max=reps_max,
                    notes="Focus on controlled movement and proper form",
                )
            )
        templates.append(
            WorkoutTemplate(
                template_id=template_id,
                user_id=SYSTEM_TEMPLATE_USER,
                name=name,
                target_body_parts=targets,
                created_at=now,
                updated_at=now,
                description=description,
                estimated_duration_minutes=45,
                difficulty=TemplateDifficulty.INTERMEDIATE,
                category=category,
                exercises=built,
            )
        )
    return templates


async def seed_templates(db_path: str = "liftlog.db") -> int:
    """Insert the built-in templates unless they were seeded before."""
    async with AsyncDatabase(db_path) as store:
        templates = AsyncTemplateRepository(store)
        if await templates.get_templates(SYSTEM_TEMPLATE_USER, limit=1):
            return 0
        defaults = default_templates()
        for template in defaults:
            await templates.save_template(template)
        return len(defaults)


if __name__ == "__main__":
    count = asyncio.run(seed())
    print("Seed data inserted" if count else "Database already contains workouts")
    added = asyncio.run(seed_templates())
    print(f"Added {added} default templates" if added else "Default templates already present")
