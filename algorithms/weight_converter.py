class WeightConverter:
    """Utility for converting and displaying loads in kg or lb."""

    KG_TO_LB = 2.20462
    UNITS = ("kg", "lb")

    @staticmethod
    def kg_to_lb(kg: float) -> float:
        return round(kg * WeightConverter.KG_TO_LB, 2)

    @staticmethod
    def lb_to_kg(lb: float) -> float:
        return round(lb / WeightConverter.KG_TO_LB, 2)

    @classmethod
    def from_kg(cls, kg: float, unit: str) -> float:
        """Convert a stored kilogram value to ``unit``."""
        if unit not in cls.UNITS:
            raise ValueError(f"unknown unit: {unit}")
        return kg if unit == "kg" else cls.kg_to_lb(kg)

    @classmethod
    def format_volume(cls, kg: float, unit: str = "kg") -> str:
        """Render a volume the way the stats screen shows it, e.g. ``2.0k kg``."""
        value = cls.from_kg(kg, unit)
        if value >= 1000:
            return f"{value / 1000:.1f}k {unit}"
        return f"{value:.0f} {unit}"
