"""
Cálculo del Handicap Index (WHS simplificado).

calculate_handicap() recibe las vueltas de un jugador (con golpes o con el
diferencial ya calculado) y devuelve el índice, las últimas 20 vueltas con
la marca de cuáles han contado y si se ha aplicado soft/hard cap.

Es una función pura: no toca BBDD ni modifica lo que le pasan.
"""
from typing import Optional, Sequence

from .golf_calc import round1, score_differential
from .schemas import CalculationResult, Differential, DifferentialRound, HandicapInput


MAX_RECENT_ROUNDS = 20
MIN_ROUNDS = 3  # por debajo: índice "no establecido" (0)

SOFT_CAP_OFFSET = 3.0
HARD_CAP_OFFSET = 5.0

# (diferencia mínima índice - última vuelta, reducción)
ESR_BANDS = ((10.0, 2.0), (7.0, 1.0))

# (máximo nº de vueltas, diferenciales que cuentan, ajuste)
_DIFFERENTIALS_TABLE = (
    (3, 1, -2.0),
    (4, 1, -1.0),
    (5, 1, 0.0),
    (6, 2, -1.0),
    (8, 2, 0.0),
    (11, 3, 0.0),
    (14, 4, 0.0),
    (16, 5, 0.0),
    (18, 6, 0.0),
    (19, 7, 0.0),
)


def differentials_configuration(count: int) -> tuple[int, float]:
    """Cuántos de los diferenciales más bajos se promedian y el ajuste fijo."""
    if count < MIN_ROUNDS:
        return 0, 0.0

    for max_count, items_to_use, adjustment in _DIFFERENTIALS_TABLE:
        if count <= max_count:
            return items_to_use, adjustment

    return 8, 0.0  # 20+


def to_differential(r: HandicapInput) -> Differential:
    if isinstance(r, DifferentialRound):
        value = r.differential
    else:
        value = score_differential(r.score, r.rating, r.slope, r.pcc)
    return Differential(id=r.id, date=r.date, value=value)


def recent_differentials(rounds: Sequence[HandicapInput]) -> list[Differential]:
    """Las 20 más recientes, de la más nueva a la más antigua."""
    diffs = [to_differential(r) for r in rounds]
    # desempate por id para que el orden de entrada no cambie el resultado
    diffs.sort(key=lambda d: (d.date, str(d.id)), reverse=True)
    return diffs[:MAX_RECENT_ROUNDS]


def exceptional_score_reduction(raw_index: float, newest_value: float) -> float:
    gap = raw_index - newest_value
    for threshold, reduction in ESR_BANDS:
        if gap >= threshold:
            return reduction
    return 0.0


def apply_caps(index: float, low_handicap_index: Optional[float]) -> tuple[float, bool, bool]:
    """Soft cap (se frena la mitad de lo que pasa de low+3) y hard cap (low+5)."""
    if low_handicap_index is None:
        return index, False, False

    soft_trigger = low_handicap_index + SOFT_CAP_OFFSET
    hard_trigger = low_handicap_index + HARD_CAP_OFFSET

    is_soft_capped = False
    is_hard_capped = False

    if index > soft_trigger:
        is_soft_capped = True
        excess = index - soft_trigger
        index = soft_trigger + excess / 2

        if index > hard_trigger:
            is_hard_capped = True
            index = hard_trigger

    return index, is_soft_capped, is_hard_capped


def calculate_handicap(
    rounds: Sequence[HandicapInput],
    low_handicap_index: Optional[float] = None,
) -> CalculationResult:
    recent = recent_differentials(rounds)
    count = len(recent)

    if count < MIN_ROUNDS:
        return CalculationResult(
            handicap_index=0.0,
            differentials=recent,
            low_handicap_index=low_handicap_index,
        )

    items_to_use, adjustment = differentials_configuration(count)

    # las más bajas, por posición (no por valor) para no liar los empates
    by_value = sorted(range(count), key=lambda i: recent[i].value)
    used_positions = set(by_value[:items_to_use])

    window = [
        d.model_copy(update={"used": i in used_positions})
        for i, d in enumerate(recent)
    ]

    average = sum(recent[i].value for i in by_value[:items_to_use]) / items_to_use
    raw_index = average + adjustment

    # ESR: solo mira la última vuelta jugada (window[0]), con el índice sin redondear
    raw_index -= exceptional_score_reduction(raw_index, window[0].value)

    index, is_soft_capped, is_hard_capped = apply_caps(round1(raw_index), low_handicap_index)

    return CalculationResult(
        handicap_index=round1(index),
        differentials=window,
        low_handicap_index=low_handicap_index,
        is_soft_capped=is_soft_capped,
        is_hard_capped=is_hard_capped,
    )
