import logging
import threading
from contextlib import contextmanager
from datetime import date

from sqlalchemy.orm import Session

from . import models, schemas
from .golf_calc import capped_adjusted_gross, score_differential
from .history import replay_history


logger = logging.getLogger(__name__)


#---------------------------------------------------------------------------------
# ---------------------------------- Players -------------------------------------
# --------------------------------------------------------------------------------

def get_players(db: Session):
    return db.query(models.Player).order_by(models.Player.name).all()

def get_player(db: Session, player_id: int):
    return db.query(models.Player).filter(models.Player.id == player_id).first()

def reset_low_handicap_indexes(db: Session) -> int:
    """Quita el low index a todos (desactiva soft/hard cap hasta el próximo recálculo)."""
    count = db.query(models.Player).update({models.Player.low_handicap_index: None})
    db.commit()
    logger.info("Reset low handicap index for %s players", count)
    return count


#---------------------------------------------------------------------------------
# ------------------------------------- Rounds ------------------------------------
# --------------------------------------------------------------------------------

def get_round(db: Session, round_id: int):
    return db.query(models.Round).filter(models.Round.id == round_id).first()

def get_round_player(db: Session, rp_id: int):
    return db.query(models.RoundPlayer).filter(models.RoundPlayer.id == rp_id).first()


def _set_round_completed(db: Session, round_id: int, completed: bool):
    r = get_round(db, round_id)
    if not r:
        return None

    r.completed = completed
    db.commit()

    # la vuelta entra (o sale) del hándicap de cada jugador
    for pid in sorted({rp.player_id for rp in r.round_players}):
        recalculate_player(db, pid)

    db.refresh(r)
    return r

def complete_round(db: Session, round_id: int):
    return _set_round_completed(db, round_id, True)

def reopen_round(db: Session, round_id: int):
    return _set_round_completed(db, round_id, False)


#---------------------------------------------------------------------------------
# ----------------------------------- Scorecards ---------------------------------
# --------------------------------------------------------------------------------

def _hole_inputs(rp: models.RoundPlayer):
    par_map = {h.number: h.par for h in rp.round.course.holes}
    return [
        schemas.HoleScoreIn(hole_number=s.hole_number, par=par_map[s.hole_number], strokes=s.strokes)
        for s in sorted(rp.hole_scores, key=lambda s: s.hole_number)
        if s.hole_number in par_map
    ]


def _update_adjusted(rp: models.RoundPlayer):
    """Recalcula bruto ajustado y diferencial de una tarjeta. Devuelve los hoyos recortados."""
    # el ajustado nunca puede superar al bruto
    result = capped_adjusted_gross(_hole_inputs(rp), rp.gross_score)
    rp.adjusted_gross_score = result.adjusted_gross_score

    if rp.tee_box is not None and rp.tee_box.slope:
        rp.score_differential = score_differential(
            rp.adjusted_gross_score, rp.tee_box.rating, rp.tee_box.slope
        )
    else:
        rp.score_differential = None

    return result.adjusted_holes


def save_scorecard(db: Session, rp: models.RoundPlayer, strokes_by_hole: dict[int, int]):
    # borrar tarjeta previa
    db.query(models.HoleScore).filter(models.HoleScore.round_player_id == rp.id).delete()
    db.commit()
    db.refresh(rp)

    valid_holes = {h.number for h in rp.round.course.holes}

    for number, strokes in sorted(strokes_by_hole.items()):
        if number not in valid_holes:
            continue
        db.add(models.HoleScore(round_player_id=rp.id, hole_number=number, strokes=strokes))

    db.commit()
    db.refresh(rp)

    adjusted_holes = []
    if rp.hole_scores:
        rp.gross_score = sum(s.strokes for s in rp.hole_scores)
        adjusted_holes = _update_adjusted(rp)
    else:
        rp.gross_score = None
        rp.adjusted_gross_score = None
        rp.score_differential = None
    db.commit()

    return {
        "round_player_id": rp.id,
        "gross_score": rp.gross_score,
        "adjusted_gross_score": rp.adjusted_gross_score,
        "score_differential": rp.score_differential,
        "adjusted_holes": [h.model_dump() for h in adjusted_holes],
    }


def recalculate_adjusted_scores(db: Session) -> int:
    """Rehace ajustado + diferencial de todas las tarjetas que tienen hoyos."""
    rps = (
        db.query(models.RoundPlayer)
        .filter(models.RoundPlayer.gross_score >= 1)
        .all()
    )

    updated = 0
    for rp in rps:
        if not rp.hole_scores:
            continue
        _update_adjusted(rp)
        updated += 1

    db.commit()
    logger.info("Adjusted scores recalculated for %s cards", updated)
    return updated


#---------------------------------------------------------------------------------
# ------------------------------------ Handicap -----------------------------------
# --------------------------------------------------------------------------------

_locks_guard = threading.Lock()
_player_locks: dict[int, threading.Lock] = {}

@contextmanager
def player_lock(player_id: int):
    # un recálculo a la vez por jugador; jugadores distintos van en paralelo
    with _locks_guard:
        lock = _player_locks.setdefault(player_id, threading.Lock())
    with lock:
        yield


def card_key(rp_id: int) -> str:
    return f"rp-{rp_id}"

def manual_key(hr_id: int) -> str:
    return f"hr-{hr_id}"


def is_eligible(rp: models.RoundPlayer) -> bool:
    return (
        rp.round.completed
        and not rp.round.is_live
        and rp.tee_box is not None
        and bool(rp.gross_score)
    )


def card_history_round(rp: models.RoundPlayer) -> schemas.HistoryRound:
    holes = _hole_inputs(rp) if rp.hole_scores else []
    return schemas.HistoryRound(
        id=card_key(rp.id),
        date=rp.round.date,
        # con hoyos el motor rehace el ajustado (tope: el bruto)
        score=rp.gross_score if holes else (rp.adjusted_gross_score or rp.gross_score),
        rating=rp.tee_box.rating,
        slope=rp.tee_box.slope,
        holes=holes,
    )


def manual_history_round(hr: models.HandicapRound) -> schemas.HistoryRound:
    return schemas.HistoryRound(
        id=manual_key(hr.id),
        date=hr.date_played,
        differential=hr.score_differential,
    )


def player_history_rounds(player: models.Player) -> list[schemas.HistoryRound]:
    cards = [card_history_round(rp) for rp in player.rounds if is_eligible(rp)]
    manual = [manual_history_round(hr) for hr in player.manual_rounds]
    return cards + manual


def recalculate_player(db: Session, player_id: int, track_low_index: bool = False, today: date | None = None):
    """
    Reproduce el histórico del jugador y guarda index_at_time / index_after
    en cada tarjeta y el índice final en el jugador.

    Con track_low_index=True también recalcula y guarda su low index.
    """
    with player_lock(player_id):
        player = get_player(db, player_id)
        if not player:
            return None

        result = replay_history(
            player_history_rounds(player),
            low_handicap_index=player.low_handicap_index,
            track_low_index=track_low_index,
            today=today,
        )

        cards = {card_key(rp.id): rp for rp in player.rounds}
        updated = 0

        for entry in result.entries:
            rp = cards.get(entry.round_id)
            if rp is None:
                continue  # vuelta manual, no tiene snapshot
            rp.index_at_time = entry.index_before
            rp.index_after = entry.index_after
            updated += 1

        player.handicap_index = result.current_index
        if track_low_index:
            player.low_handicap_index = result.low_handicap_index

        db.commit()

    logger.info(
        "Recalculated handicap for %s: %.1f (%s rounds updated)",
        player.name, result.current_index, updated,
    )

    return {
        "player_id": player.id,
        "handicap_index": result.current_index,
        "low_handicap_index": player.low_handicap_index,
        "rounds_updated": updated,
    }


def recalculate_all(db: Session, today: date | None = None):
    """Recálculo completo de todos los jugadores, con low index dinámico."""
    players = get_players(db)

    rounds_updated = 0
    failed = []

    for p in players:
        try:
            res = recalculate_player(db, p.id, track_low_index=True, today=today)
        except Exception:
            db.rollback()
            logger.exception("Failed to recalculate handicap for player %s", p.id)
            failed.append(p.id)
            continue
        rounds_updated += res["rounds_updated"]

    logger.info("Full recalculation done: %s players, %s rounds updated", len(players), rounds_updated)

    return {
        "players": len(players),
        "rounds_updated": rounds_updated,
        "failed_player_ids": failed,
    }


def get_handicap_history(db: Session, player_id: int):
    player = get_player(db, player_id)
    if not player:
        return None

    rounds = player_history_rounds(player)
    result = replay_history(rounds, low_handicap_index=player.low_handicap_index)

    by_key = {r.id: r for r in rounds}
    cards = {card_key(rp.id): rp for rp in player.rounds}
    manual = {manual_key(hr.id): hr for hr in player.manual_rounds}

    items = []
    for entry in result.entries:
        source = by_key[entry.round_id]

        if entry.round_id in cards:
            rp = cards[entry.round_id]
            kind = "card"
            tee_name = rp.tee_box.name
            gross = rp.gross_score
            adjusted = rp.adjusted_gross_score
        else:
            kind = "manual"
            tee_name = None
            gross = manual[entry.round_id].gross_score
            adjusted = None

        items.append(schemas.HandicapHistoryItem(
            id=entry.round_id,
            date=entry.date,
            type=kind,
            tee_name=tee_name,
            gross=gross,
            adjusted=adjusted,
            rating=source.rating,
            slope=source.slope,
            differential=entry.differential,
            index_before=entry.index_before,
            index_after=entry.index_after,
            used=entry.used,
            is_low_hi=player.low_handicap_index is not None and player.low_handicap_index == entry.index_after,
        ))

    # lo más nuevo primero
    items.reverse()

    return schemas.HandicapHistory(
        player_id=player.id,
        name=player.name,
        current_index=result.current_index,
        low_handicap_index=player.low_handicap_index,
        history=items,
    )
