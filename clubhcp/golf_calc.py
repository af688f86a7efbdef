import math
from typing import Iterable, Optional

from .schemas import AdjustedGross, AdjustedHole, HoleScoreIn


def round1(value: float) -> float:
    # redondeo "half up" a 1 decimal: 23.96 -> 24.0, 13.75 -> 13.8
    if not math.isfinite(value):
        return value
    return math.floor(value * 10 + 0.5) / 10


def score_differential(gross_score: float, rating: float, slope: float, pcc: float = 0.0) -> float:
    """
    Diferencial WHS: (113 / slope) * (bruto ajustado - rating - pcc),
    redondeado a 1 decimal.

    No valida nada. Con slope 0 no se lanza error: sale +/-inf según el
    signo de (bruto - rating - pcc), o nan si eso también es 0.
    """
    net = gross_score - rating - pcc

    if slope == 0:
        if net == 0:
            return math.nan
        return math.copysign(math.inf, net)

    return round1((113 / slope) * net)


def max_hole_score(par: int) -> int:
    # Doble bogey simple: par + 2 (sin golpes por hándicap del hoyo)
    return par + 2


def adjusted_gross_score(hole_scores: Iterable[HoleScoreIn]) -> AdjustedGross:
    """
    Bruto ajustado de una tarjeta: cada hoyo cuenta como mucho par + 2.
    Devuelve el total y la lista de hoyos que se han recortado.
    Con tarjetas parciales solo suma los hoyos que vienen.
    """
    total = 0
    adjusted_holes = []

    for h in hole_scores:
        cap = max_hole_score(h.par)

        if h.strokes > cap:
            total += cap
            adjusted_holes.append(
                AdjustedHole(hole_number=h.hole_number, original=h.strokes, adjusted=cap)
            )
        else:
            total += h.strokes

    return AdjustedGross(adjusted_gross_score=total, adjusted_holes=adjusted_holes)


def capped_adjusted_gross(hole_scores: Iterable[HoleScoreIn], gross_score: Optional[float] = None) -> AdjustedGross:
    """
    Igual que adjusted_gross_score, pero el total nunca pasa del bruto
    guardado (por si la tarjeta no cuadra con los hoyos del campo).
    """
    result = adjusted_gross_score(hole_scores)

    if gross_score is not None and gross_score < result.adjusted_gross_score:
        return result.model_copy(update={"adjusted_gross_score": int(gross_score)})

    return result
