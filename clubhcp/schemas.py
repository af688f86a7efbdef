import datetime as dt
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


RoundId = Union[int, str]


# ================================================================================
# ============================== ENTRADAS DEL MOTOR ==============================
# ================================================================================

class ScoreRound(BaseModel):
    """Vuelta con detalle completo: golpes + rating + slope del tee."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["score"] = "score"
    id: RoundId
    date: dt.date
    score: float
    rating: float
    slope: float
    pcc: float = 0.0


class DifferentialRound(BaseModel):
    """Vuelta antigua de la que solo conocemos el diferencial."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["differential"] = "differential"
    id: RoundId
    date: dt.date
    differential: float


HandicapInput = Annotated[
    Union[ScoreRound, DifferentialRound],
    Field(discriminator="kind"),
]


class HoleScoreIn(BaseModel):
    hole_number: int
    par: int
    strokes: int


class HistoryRound(BaseModel):
    """
    Vuelta tal cual la guarda la aplicación. Puede venir con hoyos,
    con bruto total o solo con el diferencial (datos legacy).
    """
    id: RoundId
    date: dt.date
    score: Optional[float] = None
    rating: Optional[float] = None
    slope: Optional[float] = None
    pcc: float = 0.0
    differential: Optional[float] = None
    holes: list[HoleScoreIn] = []


# ================================================================================
# ============================== SALIDAS DEL MOTOR ===============================
# ================================================================================

class AdjustedHole(BaseModel):
    model_config = ConfigDict(frozen=True)

    hole_number: int
    original: int
    adjusted: int


class AdjustedGross(BaseModel):
    adjusted_gross_score: int
    adjusted_holes: list[AdjustedHole] = []


class Differential(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: RoundId
    date: dt.date
    value: float
    used: bool = False


class CalculationResult(BaseModel):
    handicap_index: float
    differentials: list[Differential]
    low_handicap_index: Optional[float] = None
    is_soft_capped: bool = False
    is_hard_capped: bool = False


class ReplayEntry(BaseModel):
    round_id: RoundId
    date: dt.date
    differential: float
    index_before: float
    index_after: float
    used: bool = False
    low_handicap_index: Optional[float] = None


class ReplayResult(BaseModel):
    entries: list[ReplayEntry]
    current_index: float
    low_handicap_index: Optional[float] = None


# ================================================================================
# ================================== API BODIES ==================================
# ================================================================================

class DifferentialRequest(BaseModel):
    gross_score: float
    rating: float
    slope: float = Field(gt=0)
    pcc: float = 0.0


class AdjustedGrossRequest(BaseModel):
    holes: list[HoleScoreIn]


class HandicapRequest(BaseModel):
    rounds: list[HandicapInput]
    low_handicap_index: Optional[float] = None

    @field_validator("rounds")
    @classmethod
    def slopes_positive(cls, rounds):
        # el motor acepta slope 0 (sale inf), pero eso no se puede devolver en JSON
        for r in rounds:
            if isinstance(r, ScoreRound) and r.slope <= 0:
                raise ValueError(f"round {r.id}: slope must be greater than 0")
        return rounds


class ReplayRequest(BaseModel):
    rounds: list[HistoryRound]
    low_handicap_index: Optional[float] = None
    track_low_index: bool = False


class ScorecardIn(BaseModel):
    # {numero_hoyo: golpes}
    strokes: dict[int, int]


class HandicapHistoryItem(BaseModel):
    id: str
    date: dt.date
    type: Literal["manual", "card"]
    tee_name: Optional[str] = None
    gross: Optional[int] = None
    adjusted: Optional[int] = None
    rating: Optional[float] = None
    slope: Optional[float] = None
    differential: float
    index_before: float
    index_after: float
    used: bool
    is_low_hi: bool


class HandicapHistory(BaseModel):
    player_id: int
    name: str
    current_index: float
    low_handicap_index: Optional[float] = None
    history: list[HandicapHistoryItem]
