from typing import Iterable

import numpy as np


class MathTools:
    """Small numeric helpers shared by the statistics code."""

    EPL_COEFF: float = 0.0333
    # reps above this add nothing to the Epley estimate
    EPL_REP_CAP: int = 10

    @staticmethod
    def clamp(value: float, low: float, high: float) -> float:
        if low > high:
            raise ValueError("lower bound exceeds upper bound")
        return min(high, max(low, value))

    @classmethod
    def epley_1rm(cls, weight: float, reps: int) -> float:
        """Estimated one-rep max for ``weight`` lifted ``reps`` times."""
        if reps < 0:
            raise ValueError("reps must be non-negative")
        if reps <= 1:
            return float(weight)
        return weight * (1 + cls.EPL_COEFF * min(reps, cls.EPL_REP_CAP))

    @staticmethod
    def volume(sets: Iterable[tuple[float, int]]) -> float:
        """Sum of ``weight * reps`` over ``(weight, reps)`` pairs."""
        return float(sum(weight * reps for weight, reps in sets))

    @staticmethod
    def coefficient_of_variation(values: Iterable[float]) -> float:
        """Population std divided by the mean; 0.0 when undefined."""
        loads = np.fromiter(values, dtype=float)
        if loads.size < 2 or loads.mean() == 0:
            return 0.0
        return float(loads.std() / loads.mean())
