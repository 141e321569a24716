import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from models import (
    Workout,
    WorkoutExercise,
    WorkoutSet,
    WorkoutStats,
    WorkoutStatus,
    User,
    UserPreferences,
)


def build_workout() -> Workout:
    created = datetime.datetime(2024, 1, 1, 10, 0, 0, 123000)
    bench = WorkoutExercise(
        exercise_id="bench",
        exercise_name="Bench Press",
        body_parts=["chest", "upper arms"],
        order_index=0,
        workout_id="workout_1",
    )
    bench = bench.add_set(80.0, 10).add_set(80.0, 8, is_completed=True)
    fly = WorkoutExercise(
        exercise_id="fly",
        exercise_name="Cable Fly",
        body_parts=["chest"],
        order_index=1,
        workout_id="workout_1",
    ).add_set(60.0, 12)
    return Workout(
        workout_id="workout_1",
        user_id="user_1",
        name="Upper Body Push",
        target_body_parts=["chest", "shoulders", "upper arms"],
        planned_duration_minutes=45,
        created_at=created,
        exercises=[bench, fly],
    )


class WorkoutModelTest(unittest.TestCase):
    def setUp(self) -> None:
        self.workout = build_workout()

    def test_defaults(self) -> None:
        self.assertEqual(self.workout.status, WorkoutStatus.PLANNED)
        self.assertTrue(self.workout.is_planned)
        self.assertIsNone(self.workout.started_at)
        self.assertIsNone(self.workout.notes)

    def test_total_volume(self) -> None:
        self.assertEqual(self.workout.total_volume, 2160.0)
        self.assertEqual(self.workout.total_sets, 3)

    def test_row_round_trip(self) -> None:
        row = self.workout.to_row()
        self.assertEqual(row["target_body_parts"], '["chest", "shoulders", "upper arms"]')
        self.assertEqual(row["status"], "planned")
        self.assertEqual(row["created_at"], "2024-01-01T10:00:00.123000")
        restored = Workout.from_row(row, exercises=self.workout.exercises)
        self.assertEqual(restored, self.workout)

    def test_nullable_fields_round_trip(self) -> None:
        started = self.workout.created_at + datetime.timedelta(hours=1)
        done = self.workout.copy_with(
            status=WorkoutStatus.COMPLETED,
            started_at=started,
            completed_at=started + datetime.timedelta(minutes=50, milliseconds=7),
            notes="Great workout!",
        )
        restored = Workout.from_row(done.to_row(), exercises=done.exercises)
        self.assertEqual(restored, done)
        self.assertEqual(restored.completed_at.microsecond, 123000 + 7000)

    def test_dict_round_trip(self) -> None:
        self.assertEqual(Workout.from_dict(self.workout.to_dict()), self.workout)

    def test_copy_with_does_not_mutate(self) -> None:
        renamed = self.workout.copy_with(name="Push Day")
        self.assertEqual(self.workout.name, "Upper Body Push")
        self.assertEqual(renamed.name, "Push Day")
        self.assertEqual(renamed.workout_id, self.workout.workout_id)

    def test_actual_duration(self) -> None:
        self.assertEqual(self.workout.actual_duration, datetime.timedelta(0))
        self.assertEqual(self.workout.formatted_duration, "45min planned")
        timed = self.workout.copy_with(
            started_at=self.workout.created_at,
            completed_at=self.workout.created_at + datetime.timedelta(minutes=50),
        )
        self.assertEqual(timed.actual_duration, datetime.timedelta(minutes=50))
        self.assertEqual(timed.formatted_duration, "50min actual")

    def test_unusual_tags_round_trip(self) -> None:
        odd = self.workout.copy_with(target_body_parts=["neck, traps", " upper arms", ""])
        self.assertEqual(Workout.from_row(odd.to_row()).target_body_parts, ["neck, traps", " upper arms", ""])
        empty = self.workout.copy_with(target_body_parts=[])
        self.assertEqual(Workout.from_row(empty.to_row()).target_body_parts, [])

    def test_offset_timestamps_rejected(self) -> None:
        aware = datetime.datetime(2024, 1, 1, 10, 0, tzinfo=datetime.timezone.utc)
        with self.assertRaises(ValueError):
            self.workout.copy_with(created_at=aware)
        with self.assertRaises(ValueError):
            self.workout.copy_with(completed_at=aware)
        row = self.workout.to_row()
        row["created_at"] = "2024-01-01T10:00:00+02:00"
        with self.assertRaises(ValueError):
            Workout.from_row(row)

    def test_copy_as_moves_children(self) -> None:
        copy = self.workout.copy_as("workout_2")
        copy.check_parents()
        self.assertEqual(copy.exercises[0].row_id, "9:workout_2:bench:0")
        self.assertEqual(copy.total_volume, self.workout.total_volume)
        self.assertTrue(all(s.workout_exercise_id == copy.exercises[0].row_id for s in copy.exercises[0].sets))

    def test_foreign_children_rejected(self) -> None:
        self.workout.check_parents()
        with self.assertRaises(ValueError):
            self.workout.copy_with(workout_id="workout_2").check_parents()
        bench = self.workout.exercises[0]
        stray = bench.copy_with(sets=[bench.sets[0].copy_with(workout_exercise_id="other")])
        with self.assertRaises(ValueError):
            self.workout.copy_with(exercises=[stray]).check_parents()
        with self.assertRaises(ValueError):
            self.workout.copy_with(exercises=[bench, bench]).check_parents()

    def test_legacy_comma_tags_are_read(self) -> None:
        row = self.workout.to_row()
        row["target_body_parts"] = "chest,, back ,"
        self.assertEqual(Workout.from_row(row).target_body_parts, ["chest", "back"])


class WorkoutExerciseTest(unittest.TestCase):
    def test_add_set_numbers_and_parents(self) -> None:
        exercise = build_workout().exercises[0]
        self.assertEqual([s.set_number for s in exercise.sets], [1, 2])
        self.assertTrue(all(s.workout_exercise_id == exercise.row_id for s in exercise.sets))
        self.assertEqual(exercise.row_id, "9:workout_1:bench:0")

    def test_row_ids_do_not_collide(self) -> None:
        first = WorkoutExercise("c", "C", [], 0, "a_b")
        second = WorkoutExercise("b_c", "BC", [], 0, "a")
        self.assertNotEqual(first.row_id, second.row_id)
        third = WorkoutExercise("x:1", "X", [], 2, "w")
        fourth = WorkoutExercise("x", "X", [], 2, "w:1")
        self.assertNotEqual(third.row_id, fourth.row_id)

    def test_completion(self) -> None:
        exercise = build_workout().exercises[0]
        self.assertEqual(exercise.completed_sets, 1)
        self.assertFalse(exercise.is_completed)
        done = exercise.copy_with(sets=[s.copy_with(is_completed=True) for s in exercise.sets])
        self.assertTrue(done.is_completed)
        empty = exercise.copy_with(sets=[])
        self.assertFalse(empty.is_completed)


class WorkoutSetTest(unittest.TestCase):
    def test_volume_and_summary(self) -> None:
        s = WorkoutSet(weight=82.5, reps=5, set_number=1, workout_exercise_id="x")
        self.assertEqual(s.volume, 412.5)
        self.assertEqual(s.formatted_weight, "82.5kg")
        s2 = s.copy_with(weight=80.0)
        self.assertEqual(s2.summary, "80kg × 5 reps")

    def test_rejects_negative_values(self) -> None:
        with self.assertRaises(ValueError):
            WorkoutSet(weight=-1.0, reps=5, set_number=1, workout_exercise_id="x")
        with self.assertRaises(ValueError):
            WorkoutSet(weight=10.0, reps=-1, set_number=1, workout_exercise_id="x")
        with self.assertRaises(ValueError):
            WorkoutSet(weight=10.0, reps=1, set_number=0, workout_exercise_id="x")

    def test_row_round_trip(self) -> None:
        s = WorkoutSet(
            weight=100.0,
            reps=3,
            set_number=2,
            workout_exercise_id="w_e_0",
            is_completed=True,
            completed_at=datetime.datetime(2024, 2, 3, 4, 5, 6, 789000),
            notes="paused",
            rest_time_seconds=120,
        )
        row = s.to_row()
        self.assertEqual(row["is_completed"], 1)
        self.assertEqual(WorkoutSet.from_row(row), s)


class WorkoutStatsTest(unittest.TestCase):
    def test_completion_rate(self) -> None:
        stats = WorkoutStats(4, 1, 0.0, 0.0)
        self.assertEqual(stats.completion_rate, 0.25)
        self.assertEqual(WorkoutStats(0, 0, 0.0, 0.0).completion_rate, 0.0)

    def test_formatting(self) -> None:
        self.assertEqual(WorkoutStats(1, 1, 2000.0, 52.4).formatted_total_volume, "2.0k kg")
        self.assertEqual(WorkoutStats(1, 1, 850.0, 52.4).formatted_total_volume, "850 kg")
        self.assertEqual(WorkoutStats(1, 1, 850.0, 52.4).formatted_avg_duration, "52min")


class UserModelTest(unittest.TestCase):
    def test_round_trip(self) -> None:
        now = datetime.datetime(2024, 1, 1, 9, 30)
        prefs = UserPreferences(default_weight_unit="lb", favorite_body_parts=["back"], sound_enabled=False)
        user = User("u1", "Sam", now, now, {"chest": 120, "back": 40}, prefs)
        restored = User.from_row(user.to_row(), UserPreferences.from_row(prefs.to_row("u1")))
        self.assertEqual(restored, user)


if __name__ == "__main__":
    unittest.main()
