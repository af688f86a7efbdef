import os
import tempfile
from datetime import date

import pytest

# la BBDD se configura al importar clubhcp.db, así que va antes de importar nada
_tmp_dir = tempfile.mkdtemp(prefix="clubhcp-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"

from clubhcp import models  # noqa: E402
from clubhcp.db import SessionLocal, init_db  # noqa: E402


@pytest.fixture
def db():
    init_db(reset=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient
    from clubhcp.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def course(db):
    """Campo de 18 hoyos par 4 (par 72), tee White 70.0 / 113."""
    c = models.Course(name="City Park North")
    c.holes = [models.Hole(number=n, par=4) for n in range(1, 19)]
    c.tee_boxes = [models.TeeBox(name="White", rating=70.0, slope=113)]
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


@pytest.fixture
def player(db):
    p = models.Player(name="Wayne", handicap_index=0.0)
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


def add_card(db, course, player, round_date, gross, completed=True, is_live=False, tee=True):
    r = models.Round(date=round_date, course_id=course.id, completed=completed, is_live=is_live)
    db.add(r)
    db.commit()

    rp = models.RoundPlayer(
        round_id=r.id,
        player_id=player.id,
        tee_box_id=course.tee_boxes[0].id if tee else None,
        gross_score=gross,
    )
    db.add(rp)
    db.commit()
    db.refresh(rp)
    return rp


def add_manual(db, player, round_date, differential):
    hr = models.HandicapRound(player_id=player.id, date_played=round_date, score_differential=differential)
    db.add(hr)
    db.commit()
    db.refresh(hr)
    return hr


@pytest.fixture
def make_card(db, course, player):
    def _make(round_date: date, gross, **kwargs):
        return add_card(db, course, player, round_date, gross, **kwargs)
    return _make


@pytest.fixture
def make_manual(db, player):
    def _make(round_date: date, differential):
        return add_manual(db, player, round_date, differential)
    return _make
