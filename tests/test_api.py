from datetime import date, timedelta


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_differential_endpoint(client):
    res = client.post("/api/differential", json={"gross_score": 85, "rating": 63.8, "slope": 100})

    assert res.status_code == 200
    assert res.json() == {"differential": 24.0}


def test_differential_endpoint_rejects_zero_slope(client):
    res = client.post("/api/differential", json={"gross_score": 85, "rating": 63.8, "slope": 0})
    assert res.status_code == 422


def test_adjusted_gross_endpoint(client):
    body = {"holes": [{"hole_number": 1, "par": 4, "strokes": 9}, {"hole_number": 2, "par": 3, "strokes": 3}]}
    res = client.post("/api/adjusted-gross", json=body)

    assert res.status_code == 200
    assert res.json() == {
        "adjusted_gross_score": 9,
        "adjusted_holes": [{"hole_number": 1, "original": 9, "adjusted": 6}],
    }


def test_handicap_endpoint_with_mixed_rounds(client):
    body = {
        "rounds": [
            {"kind": "differential", "id": "old", "date": "2023-01-01", "differential": 10.0},
            {"kind": "score", "id": "a", "date": "2023-02-01", "score": 82, "rating": 70.0, "slope": 113},
            {"kind": "score", "id": "b", "date": "2023-03-01", "score": 84, "rating": 70.0, "slope": 113},
        ],
        "low_handicap_index": None,
    }
    res = client.post("/api/handicap", json=body)
    data = res.json()

    assert res.status_code == 200
    assert data["handicap_index"] == 8.0
    assert [d["id"] for d in data["differentials"]] == ["b", "a", "old"]
    assert [d["used"] for d in data["differentials"]] == [False, False, True]


def test_handicap_endpoint_soft_cap(client):
    rounds = [
        {"kind": "differential", "id": i, "date": str(date(2024, 1, 1) + timedelta(days=i)), "differential": 14.5}
        for i in range(20)
    ]
    res = client.post("/api/handicap", json={"rounds": rounds, "low_handicap_index": 10.0})
    data = res.json()

    assert data["handicap_index"] == 13.8
    assert data["is_soft_capped"] is True
    assert data["is_hard_capped"] is False


def test_replay_endpoint(client):
    rounds = [
        {"id": "r1", "date": "2024-01-01", "differential": 14.0},
        {"id": "r3", "date": "2024-01-15", "differential": 10.0},
        {"id": "r2", "date": "2024-01-08", "score": 82, "rating": 70.0, "slope": 113},
        {"id": "bad", "date": "2024-01-09"},
    ]
    res = client.post("/api/replay", json={"rounds": rounds})
    data = res.json()

    assert [e["round_id"] for e in data["entries"]] == ["r1", "r2", "r3"]
    assert data["entries"][1]["index_after"] == data["entries"][2]["index_before"]
    assert data["current_index"] == 8.0


def test_history_for_unknown_player(client):
    assert client.get("/api/players/999/handicap-history").status_code == 404
    assert client.post("/api/players/999/recalculate").status_code == 404


def test_unknown_round_and_card(client):
    assert client.post("/api/rounds/5/complete").status_code == 404
    assert client.post("/api/rounds/5/reopen").status_code == 404
    assert client.post("/api/round-players/5/scores", json={"strokes": {"1": 4}}).status_code == 404


def test_scorecard_flow(client, db, player, make_card, make_manual):
    make_manual(date(2024, 2, 1), 10.0)
    make_manual(date(2024, 2, 8), 12.0)
    rp = make_card(date(2024, 3, 1), None, completed=False)

    strokes = {str(n): 4 for n in range(1, 19)}
    strokes["18"] = 10
    res = client.post(f"/api/round-players/{rp.id}/scores", json={"strokes": strokes})

    assert res.status_code == 200
    assert res.json()["adjusted_gross_score"] == 74
    assert res.json()["score_differential"] == 4.0

    res = client.post(f"/api/rounds/{rp.round_id}/complete")
    assert res.json() == {"round_id": rp.round_id, "completed": True}

    history = client.get(f"/api/players/{player.id}/handicap-history").json()
    assert history["current_index"] == 2.0
    assert history["history"][0]["type"] == "card"
    assert history["history"][0]["used"] is True

    res = client.post(f"/api/players/{player.id}/recalculate")
    assert res.json()["handicap_index"] == 2.0


def test_recalculate_all_endpoint(client, player, make_manual):
    for i in range(3):
        make_manual(date(2024, 1, 1) + timedelta(days=i), 10.0 + i)

    res = client.post("/api/recalculate")

    assert res.status_code == 200
    assert res.json()["players"] == 1
    assert res.json()["failed_player_ids"] == []


def test_reset_low_index_endpoint(client, player):
    res = client.post("/api/players/reset-low-index")
    assert res.json() == {"players": 1}


def test_recalculate_adjusted_scores_endpoint(client):
    res = client.post("/api/recalculate-adjusted-scores")
    assert res.json() == {"updated": 0}


def test_handicap_endpoint_rejects_zero_slope(client):
    body = {
        "rounds": [
            {"kind": "differential", "id": "a", "date": "2024-01-01", "differential": 10.0},
            {"kind": "differential", "id": "b", "date": "2024-01-02", "differential": 12.0},
            {"kind": "score", "id": "c", "date": "2024-01-03", "score": 85, "rating": 70.0, "slope": 0},
        ],
    }
    res = client.post("/api/handicap", json=body)

    assert res.status_code == 422
