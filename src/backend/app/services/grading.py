import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class AverageResult:
    value: float | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    return isinstance(value, int) or math.isfinite(value)


def compute_final_average(first: object, second: object) -> AverageResult:
    """Mean of the two semester scores, rounded half-up to two decimals.

    Scores go through ``str`` before ``Decimal`` so 8.125 rounds to 8.13 rather
    than following its binary float expansion.
    """
    if not _is_number(first) or not _is_number(second):
        return AverageResult(error="Semester scores must be numbers")

    total = Decimal(str(first)) + Decimal(str(second))
    average = (total / 2).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    return AverageResult(value=float(average))
