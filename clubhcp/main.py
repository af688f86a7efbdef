import logging
import os
import sys

from fastapi import FastAPI, Depends, HTTPException
from sqlalchemy.orm import Session

from .db import get_db, init_db
from . import crud, schemas
from .routers import handicap


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------------- Logger Setup ----------------
logger = logging.getLogger("clubhcp")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    logger.addHandler(console_handler)


init_db()


app = FastAPI(title="Club Handicap")
app.include_router(handicap.router)


# ================================================================================
# ================================== PLAYERS =====================================
# ================================================================================

@app.get("/api/players/{player_id}/handicap-history", response_model=schemas.HandicapHistory)
def player_handicap_history(player_id: int, db: Session = Depends(get_db)):
    history = crud.get_handicap_history(db, player_id)
    if history is None:
        raise HTTPException(status_code=404, detail="Player not found")
    return history


@app.post("/api/players/{player_id}/recalculate")
def player_recalculate(player_id: int, db: Session = Depends(get_db)):
    res = crud.recalculate_player(db, player_id)
    if res is None:
        raise HTTPException(status_code=404, detail="Player not found")
    return res


@app.post("/api/players/reset-low-index")
def players_reset_low_index(db: Session = Depends(get_db)):
    count = crud.reset_low_handicap_indexes(db)
    return {"players": count}


@app.post("/api/recalculate")
def recalculate_all(db: Session = Depends(get_db)):
    return crud.recalculate_all(db)


# ================================================================================
# =================================== ROUNDS =====================================
# ================================================================================

@app.post("/api/rounds/{round_id}/complete")
def round_complete(round_id: int, db: Session = Depends(get_db)):
    r = crud.complete_round(db, round_id)
    if r is None:
        raise HTTPException(status_code=404, detail="Round not found")
    return {"round_id": r.id, "completed": r.completed}


@app.post("/api/rounds/{round_id}/reopen")
def round_reopen(round_id: int, db: Session = Depends(get_db)):
    r = crud.reopen_round(db, round_id)
    if r is None:
        raise HTTPException(status_code=404, detail="Round not found")
    return {"round_id": r.id, "completed": r.completed}


@app.post("/api/round-players/{rp_id}/scores")
def round_player_scores(rp_id: int, body: schemas.ScorecardIn, db: Session = Depends(get_db)):
    rp = crud.get_round_player(db, rp_id)
    if rp is None:
        raise HTTPException(status_code=404, detail="Round player not found")

    totals = crud.save_scorecard(db, rp, body.strokes)

    # si la vuelta ya cuenta, el hándicap del jugador cambia
    if rp.round.completed and not rp.round.is_live:
        crud.recalculate_player(db, rp.player_id)

    return totals


@app.post("/api/recalculate-adjusted-scores")
def recalculate_adjusted_scores(db: Session = Depends(get_db)):
    updated = crud.recalculate_adjusted_scores(db)
    return {"updated": updated}


# ---------------------------------------------------------------------------


@app.get("/health")
def health():
    return {"status": "ok"}
