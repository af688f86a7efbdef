"""
Reconstrucción del histórico de índices de un jugador.

Se recorren sus vueltas de la más antigua a la más nueva y para cada una se
calcula el índice con el que llegaba (index_before) y el que le queda después
de sumarla (index_after).
"""
import datetime as dt
from typing import Optional, Sequence

from .golf_calc import capped_adjusted_gross
from .handicap import calculate_handicap, to_differential
from .schemas import (
    DifferentialRound,
    HandicapInput,
    HistoryRound,
    ReplayEntry,
    ReplayResult,
    ScoreRound,
)


LOW_INDEX_MIN_ROUNDS = 20  # el low index solo cuenta con índices de 20+ vueltas
LOW_INDEX_WINDOW_YEARS = 1


def resolve_round(r: HistoryRound) -> Optional[HandicapInput]:
    """
    Pasa una vuelta guardada a entrada del motor.
    Devuelve None si no hay datos suficientes para sacar un diferencial.
    """
    has_tee = r.rating is not None and bool(r.slope)

    if has_tee and r.holes:
        score = capped_adjusted_gross(r.holes, r.score).adjusted_gross_score
        return ScoreRound(id=r.id, date=r.date, score=score, rating=r.rating, slope=r.slope, pcc=r.pcc)

    if has_tee and r.score is not None:
        return ScoreRound(id=r.id, date=r.date, score=r.score, rating=r.rating, slope=r.slope, pcc=r.pcc)

    if r.differential is not None:
        return DifferentialRound(id=r.id, date=r.date, differential=r.differential)

    return None


def one_year_before(d: dt.date) -> dt.date:
    try:
        return d.replace(year=d.year - LOW_INDEX_WINDOW_YEARS)
    except ValueError:
        # 29 de febrero
        return d.replace(year=d.year - LOW_INDEX_WINDOW_YEARS, day=28)


def lowest_index_in_window(
    entries: Sequence[ReplayEntry],
    window_start: dt.date,
    window_end: Optional[dt.date] = None,
) -> Optional[float]:
    """
    Índice más bajo (index_after) entre las vueltas con fecha en
    [window_start, window_end) que se jugaron con 20 o más vueltas en el
    histórico. `entries` tiene que venir en el orden en que se reprodujeron.
    """
    low = None
    for position, e in enumerate(entries, start=1):
        if position < LOW_INDEX_MIN_ROUNDS:
            continue
        if e.date < window_start:
            continue
        if window_end is not None and e.date >= window_end:
            continue
        if low is None or e.index_after < low:
            low = e.index_after
    return low


def replay_history(
    rounds: Sequence[HistoryRound],
    low_handicap_index: Optional[float] = None,
    track_low_index: bool = False,
    today: Optional[dt.date] = None,
) -> ReplayResult:
    """
    Con track_low_index=False se usa siempre el low index que nos pasan.
    Con track_low_index=True se ignora y se calcula para cada vuelta con los
    índices de los 12 meses anteriores a esa vuelta.
    """
    ordered = sorted(rounds, key=lambda r: r.date)

    accumulator: list[HandicapInput] = []
    entries: list[ReplayEntry] = []

    for r in ordered:
        handicap_input = resolve_round(r)
        if handicap_input is None:
            continue

        if track_low_index:
            low = low_handicap_index_for(entries, r.date)
        else:
            low = low_handicap_index

        before = calculate_handicap(accumulator, low)
        accumulator.append(handicap_input)
        after = calculate_handicap(accumulator, low)

        used = any(d.used and d.id == handicap_input.id for d in after.differentials)

        entries.append(ReplayEntry(
            round_id=handicap_input.id,
            date=handicap_input.date,
            differential=to_differential(handicap_input).value,
            index_before=before.handicap_index,
            index_after=after.handicap_index,
            used=used,
            low_handicap_index=low,
        ))

    if not track_low_index:
        current_index = entries[-1].index_after if entries else 0.0
        return ReplayResult(
            entries=entries,
            current_index=current_index,
            low_handicap_index=low_handicap_index,
        )

    today = today or dt.date.today()
    final_low = low_handicap_index_for_player(entries, today)
    final = calculate_handicap(accumulator, final_low)

    return ReplayResult(
        entries=entries,
        current_index=final.handicap_index,
        low_handicap_index=final_low,
    )


def low_handicap_index_for(entries: Sequence[ReplayEntry], round_date: dt.date) -> Optional[float]:
    # 12 meses antes de la vuelta, sin incluir el propio día
    return lowest_index_in_window(entries, one_year_before(round_date), round_date)


def low_handicap_index_for_player(entries: Sequence[ReplayEntry], today: dt.date) -> Optional[float]:
    return lowest_index_in_window(entries, one_year_before(today))
