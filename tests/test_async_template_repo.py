import os
import sys
import datetime
import pytest
import pytest_asyncio

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import AsyncDatabase, AsyncTemplateRepository, AsyncWorkoutRepository, NotFoundError
from models import (
    TemplateCategory,
    TemplateDifficulty,
    TemplateExercise,
    Workout,
    WorkoutExercise,
    WorkoutStatus,
    WorkoutTemplate,
)
from seed_sample_data import SYSTEM_TEMPLATE_USER, default_templates, seed_templates

BASE = datetime.datetime(2024, 3, 1, 9, 0)


class FakeClock:
    def __init__(self) -> None:
        self.now = BASE

    def __call__(self) -> datetime.datetime:
        self.now += datetime.timedelta(minutes=1)
        return self.now


def make_template(
    template_id: str,
    user_id: str = "user_1",
    category=TemplateCategory.PUSH,
    difficulty=TemplateDifficulty.BEGINNER,
    updated_minutes: int = 0,
) -> WorkoutTemplate:
    exercises = [
        TemplateExercise("bench", "Bench Press", ["chest", "upper arms"], 0, template_id,
                         suggested_sets=4, suggested_reps_min=6, suggested_reps_max=8,
                         suggested_weight=80.0),
        TemplateExercise("fly", "Cable Fly", ["chest"], 1, template_id),
    ]
    return WorkoutTemplate(
        template_id=template_id,
        user_id=user_id,
        name=f"Template {template_id}",
        target_body_parts=["chest"],
        created_at=BASE,
        updated_at=BASE + datetime.timedelta(minutes=updated_minutes),
        description="press focus",
        estimated_duration_minutes=50,
        difficulty=difficulty,
        category=category,
        exercises=exercises,
    )


@pytest_asyncio.fixture
async def templates(tmp_path):
    store = AsyncDatabase(str(tmp_path / "templates.db"))
    repository = AsyncTemplateRepository(store, clock=FakeClock())
    yield repository
    await repository.close()


@pytest.mark.asyncio
async def test_save_and_get_round_trip(templates):
    template = make_template("t1")
    assert await templates.save_template(template) == "t1"
    assert await templates.get_template("t1") == template
    assert await templates.get_template("missing") is None


@pytest.mark.asyncio
async def test_save_replaces_exercises(templates):
    template = make_template("t1")
    await templates.save_template(template)
    trimmed = template.copy_with(exercises=template.exercises[:1])
    await templates.save_template(trimmed)
    assert await templates.get_template("t1") == trimmed
    rows = await templates.fetch_all("SELECT COUNT(*) FROM template_exercises;")
    assert rows[0][0] == 1


@pytest.mark.asyncio
async def test_foreign_exercise_rejected(templates):
    template = make_template("t1")
    stray = template.exercises[0].copy_with(template_id="t2")
    with pytest.raises(ValueError):
        await templates.save_template(template.copy_with(exercises=[stray]))
    with pytest.raises(ValueError):
        await templates.save_template(template.copy_with(template_id=""))


@pytest.mark.asyncio
async def test_filters_and_ordering(templates):
    await templates.save_template(make_template("a", updated_minutes=1))
    await templates.save_template(
        make_template("b", category=TemplateCategory.LEGS, updated_minutes=3)
    )
    await templates.save_template(
        make_template("c", difficulty=TemplateDifficulty.ADVANCED, updated_minutes=2)
    )
    await templates.save_template(make_template("d", user_id="other"))
    listed = await templates.get_templates("user_1")
    assert [t.template_id for t in listed] == ["b", "c", "a"]
    push = await templates.get_templates_by_category("user_1", "push")
    assert [t.template_id for t in push] == ["c", "a"]
    hard = await templates.get_templates("user_1", difficulty=TemplateDifficulty.ADVANCED)
    assert [t.template_id for t in hard] == ["c"]
    found = await templates.get_templates("user_1", search="Template b")
    assert [t.template_id for t in found] == ["b"]
    assert len(await templates.get_templates("user_1", search="press")) == 3
    page = await templates.get_templates("user_1", limit=1, offset=1)
    assert [t.template_id for t in page] == ["c"]
    with pytest.raises(ValueError):
        await templates.get_templates("user_1", limit=-1)


@pytest.mark.asyncio
async def test_update_stamps_and_requires_existing(templates):
    template = make_template("t1")
    await templates.save_template(template)
    updated = await templates.update_template(template.copy_with(name="Renamed"))
    assert updated.updated_at == BASE + datetime.timedelta(minutes=1)
    assert await templates.get_template("t1") == updated
    with pytest.raises(NotFoundError):
        await templates.update_template(make_template("ghost"))


@pytest.mark.asyncio
async def test_delete_cascades(templates):
    await templates.save_template(make_template("t1"))
    await templates.delete_template("t1")
    assert await templates.get_template("t1") is None
    rows = await templates.fetch_all("SELECT COUNT(*) FROM template_exercises;")
    assert rows[0][0] == 0
    with pytest.raises(NotFoundError):
        await templates.delete_template("t1")


@pytest.mark.asyncio
async def test_favorite_usage_and_stats(templates):
    await templates.save_template(make_template("a"))
    await templates.save_template(make_template("b"))
    await templates.save_template(make_template("c"))
    await templates.toggle_favorite("a")
    assert (await templates.get_template("a")).is_favorite
    favorites = await templates.get_templates("user_1", is_favorite=True)
    assert [t.template_id for t in favorites] == ["a"]
    await templates.toggle_favorite("a")
    assert not (await templates.get_template("a")).is_favorite
    await templates.toggle_favorite("b")

    await templates.record_usage("c")
    await templates.record_usage("c")
    await templates.record_usage("b")
    used = await templates.get_template("c")
    assert used.usage_count == 2
    assert used.last_used_at is not None

    popular = await templates.get_popular_templates("user_1")
    assert [t.template_id for t in popular] == ["c", "b", "a"]
    recent = await templates.get_recent_templates("user_1")
    assert [t.template_id for t in recent] == ["b", "c"]

    stats = await templates.get_template_stats("user_1")
    assert stats.total_templates == 3
    assert stats.favorite_templates == 1
    assert stats.total_usage == 3
    assert stats.average_usage == 1.0
    assert stats.used_templates == 2
    assert stats.formatted_usage_rate == "67%"
    assert (await templates.get_template_stats("nobody")).usage_rate == 0.0

    with pytest.raises(NotFoundError):
        await templates.record_usage("ghost")
    with pytest.raises(NotFoundError):
        await templates.toggle_favorite("ghost")


@pytest.mark.asyncio
async def test_template_from_completed_sets(templates):
    bench = WorkoutExercise("bench", "Bench Press", ["chest"], 0, "w1")
    bench = bench.add_set(80.0, 10, is_completed=True).add_set(85.0, 6, is_completed=True)
    bench = bench.add_set(90.0, 2)
    fly = WorkoutExercise("fly", "Cable Fly", ["chest"], 1, "w1").add_set(20.0, 15)
    workout = Workout(
        "w1", "user_1", "Push", ["chest"], 40, BASE,
        status=WorkoutStatus.COMPLETED, exercises=[bench, fly],
    )
    template = await templates.create_template_from_workout(
        workout, "From Push", category="push", template_id="tw"
    )
    assert await templates.get_template("tw") == template
    first, second = template.exercises
    assert (first.suggested_sets, first.suggested_reps_min, first.suggested_reps_max) == (2, 6, 10)
    assert first.suggested_weight == 82.5
    assert first.suggested_reps_range == "6-10 reps"
    assert (second.suggested_sets, second.suggested_reps_range) == (3, "8-12 reps")
    assert second.suggested_weight is None
    assert template.estimated_duration_minutes == 40
    assert template.category_name == "Push"
    assert template.difficulty_name == "Beginner"


@pytest.mark.asyncio
async def test_workout_from_template(tmp_path):
    store = AsyncDatabase(str(tmp_path / "plan.db"))
    async with AsyncTemplateRepository(store, clock=FakeClock()) as templates:
        await templates.save_template(make_template("t1"))
        workout = await templates.create_workout_from_template(
            "t1", "user_1", workout_id="planned_1"
        )
        workouts = AsyncWorkoutRepository(store)
        await workouts.save_workout(workout)
        loaded = await workouts.get_workout("planned_1")
        assert loaded == workout
        assert loaded.status == WorkoutStatus.PLANNED
        assert loaded.planned_duration_minutes == 50
        assert [e.exercise_id for e in loaded.exercises] == ["bench", "fly"]
        assert all(e.sets == [] for e in loaded.exercises)
        assert (await templates.get_template("t1")).usage_count == 1
        with pytest.raises(NotFoundError):
            await templates.create_workout_from_template("ghost", "user_1")


@pytest.mark.asyncio
async def test_default_templates_seed_once(tmp_path):
    path = str(tmp_path / "seed.db")
    assert await seed_templates(path) == 7
    assert await seed_templates(path) == 0
    async with AsyncTemplateRepository(AsyncDatabase(path)) as templates:
        stored = await templates.get_templates(SYSTEM_TEMPLATE_USER)
        chest = await templates.get_template("chest_template")
    assert len(stored) == 7
    assert chest.name == "Chest Focus"
    assert chest.category == TemplateCategory.PUSH
    bench = chest.exercises[0]
    assert (bench.suggested_sets, bench.suggested_reps_range) == (4, "6-8 reps")


def test_default_templates_are_consistent():
    for template in default_templates(BASE):
        template.check_parents()
        assert template.difficulty == TemplateDifficulty.INTERMEDIATE
        assert template.exercises
