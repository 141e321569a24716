import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import MathTools, WeightConverter, WorkoutMath


class MathToolsTestCase(unittest.TestCase):
    def test_constants(self) -> None:
        self.assertAlmostEqual(MathTools.EPL_COEFF, 0.0333)
        self.assertEqual(MathTools.EPL_REP_CAP, 10)

    def test_clamp(self) -> None:
        self.assertEqual(MathTools.clamp(5, 0, 10), 5)
        self.assertEqual(MathTools.clamp(-1, 0, 10), 0)
        self.assertEqual(MathTools.clamp(11, 0, 10), 10)
        with self.assertRaises(ValueError):
            MathTools.clamp(1, 2, 1)

    def test_epley_1rm(self) -> None:
        self.assertAlmostEqual(MathTools.epley_1rm(100, 5), 100 * (1 + 0.0333 * 5))
        self.assertAlmostEqual(MathTools.epley_1rm(100, 15), 100 * (1 + 0.0333 * 10))
        self.assertEqual(MathTools.epley_1rm(120, 1), 120.0)
        with self.assertRaises(ValueError):
            MathTools.epley_1rm(100, -1)

    def test_volume(self) -> None:
        sets = [(80.0, 10), (80.0, 8), (60.0, 12)]
        self.assertEqual(MathTools.volume(sets), 2160.0)
        self.assertEqual(MathTools.volume([]), 0.0)

    def test_coefficient_of_variation(self) -> None:
        self.assertEqual(MathTools.coefficient_of_variation([5.0]), 0.0)
        self.assertEqual(MathTools.coefficient_of_variation([0.0, 0.0]), 0.0)
        self.assertEqual(MathTools.coefficient_of_variation([3.0, 3.0, 3.0]), 0.0)
        self.assertAlmostEqual(MathTools.coefficient_of_variation([1.0, 3.0]), 0.5)


class WeightConverterTestCase(unittest.TestCase):
    def test_conversion(self) -> None:
        self.assertEqual(WeightConverter.kg_to_lb(100), 220.46)
        self.assertEqual(WeightConverter.lb_to_kg(220.46), 100.0)
        self.assertEqual(WeightConverter.from_kg(50, "kg"), 50)
        with self.assertRaises(ValueError):
            WeightConverter.from_kg(50, "stone")

    def test_format_volume(self) -> None:
        self.assertEqual(WeightConverter.format_volume(2000.0), "2.0k kg")
        self.assertEqual(WeightConverter.format_volume(850.0), "850 kg")
        self.assertEqual(WeightConverter.format_volume(500.0, "lb"), "1.1k lb")


class WorkoutMathTestCase(unittest.TestCase):
    def test_duration_minutes(self) -> None:
        self.assertEqual(
            WorkoutMath.duration_minutes(
                "2024-01-01T10:00:00.000000", "2024-01-01T10:45:30.000000", 30
            ),
            45.5,
        )
        self.assertEqual(WorkoutMath.duration_minutes(None, None, 30), 30.0)
        self.assertEqual(
            WorkoutMath.duration_minutes("2024-01-01T10:00:00.000000", None, 30), 30.0
        )

    def test_body_part_volume(self) -> None:
        rows = [
            ('["chest", "upper arms"]', 800.0),
            ("chest", 200.0),
            ("", 50.0),
            (None, 10.0),
            ("[]", 5.0),
        ]
        self.assertEqual(
            WorkoutMath.body_part_volume(rows), {"chest": 1000.0, "upper arms": 800.0}
        )

    def test_summary_of_nothing(self) -> None:
        stats = WorkoutMath.summarize_workouts([])
        self.assertEqual(stats.total_workouts, 0)
        self.assertEqual(stats.average_duration_minutes, 0.0)

    def test_week_start_crosses_month(self) -> None:
        self.assertEqual(
            WorkoutMath.week_start(datetime.date(2024, 3, 2)), datetime.date(2024, 2, 26)
        )


if __name__ == "__main__":
    unittest.main()
