from .math_tools import MathTools
from .weight_converter import WeightConverter
from .workout_math import WorkoutMath

__all__ = ["MathTools", "WeightConverter", "WorkoutMath"]
