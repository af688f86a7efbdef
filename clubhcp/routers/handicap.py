# clubhcp/routers/handicap.py

from fastapi import APIRouter

from clubhcp import schemas
from clubhcp.golf_calc import adjusted_gross_score, score_differential
from clubhcp.handicap import calculate_handicap
from clubhcp.history import replay_history

router = APIRouter(prefix="/api", tags=["engine"])


# Cálculos sueltos, sin BBDD: el cliente manda los datos y se devuelve el resultado

@router.post("/differential")
def differential(body: schemas.DifferentialRequest):
    value = score_differential(body.gross_score, body.rating, body.slope, body.pcc)
    return {"differential": value}


@router.post("/adjusted-gross", response_model=schemas.AdjustedGross)
def adjusted_gross(body: schemas.AdjustedGrossRequest):
    return adjusted_gross_score(body.holes)


@router.post("/handicap", response_model=schemas.CalculationResult)
def handicap(body: schemas.HandicapRequest):
    return calculate_handicap(body.rounds, body.low_handicap_index)


@router.post("/replay", response_model=schemas.ReplayResult)
def replay(body: schemas.ReplayRequest):
    return replay_history(
        body.rounds,
        low_handicap_index=body.low_handicap_index,
        track_low_index=body.track_low_index,
    )
