"""Recruitment cycle, phase and question catalog endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

API = "/api/v1"


def _cycle_body(name: str = "Spring", start_offset_days: int = -1, length_days: int = 30) -> dict:
    start = datetime.now(timezone.utc) + timedelta(days=start_offset_days)
    return {
        "name": name,
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(days=length_days)).isoformat(),
    }


def test_create_and_fetch_cycle(client):
    created = client.post(f"{API}/cycles", json=_cycle_body("Spring"))
    assert created.status_code == 201
    cycle = created.json()

    fetched = client.get(f"{API}/cycles/{cycle['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Spring"

    active = client.get(f"{API}/cycles/active")
    assert active.status_code == 200
    assert active.json()["id"] == cycle["id"]


def test_cycle_must_end_after_it_starts(client):
    body = _cycle_body()
    body["end_time"] = body["start_time"]
    resp = client.post(f"{API}/cycles", json=body)
    assert resp.status_code == 400
    assert resp.headers["content-type"].startswith("application/problem+json")
    assert resp.json()["code"] == "CYCLE_DEFINITION_INVALID"


def test_cycles_listed_newest_first_and_no_active_cycle(client):
    client.post(f"{API}/cycles", json=_cycle_body("Old", start_offset_days=-400, length_days=30))
    client.post(f"{API}/cycles", json=_cycle_body("Later", start_offset_days=-200, length_days=30))

    names = [c["name"] for c in client.get(f"{API}/cycles").json()]
    assert names == ["Later", "Old"]

    resp = client.get(f"{API}/cycles/active")
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


def test_unknown_cycle_is_problem_404(client):
    resp = client.get(f"{API}/cycles/does-not-exist")
    assert resp.status_code == 404
    body = resp.json()
    assert body["status"] == 404
    assert "does-not-exist" in body["detail"]


def test_phases_append_reorder_and_delete(client, open_cycle):
    base = f"{API}/cycles/{open_cycle.id}/phases"
    first = client.post(base, json={"name": "Resume review"}).json()
    second = client.post(base, json={"name": "Interview"}).json()
    assert (first["order"], second["order"]) == (0, 1)

    reordered = client.post(f"{base}/reorder", json={"ids": [second["id"], first["id"]]})
    assert reordered.status_code == 200
    assert [p["name"] for p in reordered.json()] == ["Interview", "Resume review"]

    assert client.delete(f"{API}/phases/{first['id']}").status_code == 204
    assert [p["id"] for p in client.get(base).json()] == [second["id"]]
    assert client.delete(f"{API}/phases/{first['id']}").status_code == 404


def test_questions_are_appended_in_order(client, open_cycle):
    for label in ("First", "Second", "Third"):
        resp = client.post(
            f"{API}/questions",
            json={"cycle_id": open_cycle.id, "type": "string", "label": label},
        )
        assert resp.status_code == 201

    listed = client.get(f"{API}/cycles/{open_cycle.id}/questions").json()
    assert [q["label"] for q in listed] == ["First", "Second", "Third"]
    assert [q["order"] for q in listed] == [0, 1, 2]


def test_question_reorder_assigns_positions(client, open_cycle):
    ids = [
        client.post(
            f"{API}/questions",
            json={"cycle_id": open_cycle.id, "type": "boolean", "label": label},
        ).json()["id"]
        for label in ("a", "b", "c")
    ]
    resp = client.post(f"{API}/cycles/{open_cycle.id}/questions/reorder", json={"ids": list(reversed(ids))})
    assert resp.status_code == 200
    assert [q["label"] for q in resp.json()] == ["c", "b", "a"]


def test_question_definition_rules(client, open_cycle):
    bad_lengths = client.post(
        f"{API}/questions",
        json={"cycle_id": open_cycle.id, "type": "string", "label": "x", "min_length": 10, "max_length": 5},
    )
    assert bad_lengths.status_code == 400
    assert bad_lengths.json()["detail"] == "Minimum length can't be larger than maximum length"

    no_options = client.post(
        f"{API}/questions",
        json={"cycle_id": open_cycle.id, "type": "dropdown", "label": "x"},
    )
    assert no_options.status_code == 400
    assert no_options.json()["code"] == "QUESTION_DEFINITION_INVALID"

    duplicate = client.post(
        f"{API}/questions",
        json={"cycle_id": open_cycle.id, "type": "checkbox", "label": "x", "options": ["a", "a"]},
    )
    assert duplicate.status_code == 400

    unknown_type = client.post(
        f"{API}/questions",
        json={"cycle_id": open_cycle.id, "type": "slider", "label": "x"},
    )
    assert unknown_type.status_code == 422
    assert unknown_type.json()["code"] == "REQUEST_INVALID"


def test_update_keeps_order_and_delete_removes_answers(client, form):
    question = form["questions"]["bio"]
    application = form["application"]
    client.put(
        f"{API}/responses",
        json={"question_id": question.id, "application_id": application.id, "value": "hello"},
    )

    updated = client.put(
        f"{API}/questions/{question.id}",
        json={"cycle_id": question.cycle_id, "type": "string", "label": "Tell us more", "required": False},
    )
    assert updated.status_code == 200
    assert updated.json()["label"] == "Tell us more"
    assert updated.json()["order"] == question.order

    assert client.delete(f"{API}/questions/{question.id}").status_code == 204
    remaining = client.get(f"{API}/applications/{application.id}/responses").json()
    assert all(r["question_id"] != question.id for r in remaining)
    assert client.get(f"{API}/cycles/{question.cycle_id}/questions").status_code == 200
    assert client.delete(f"{API}/questions/{question.id}").status_code == 404


def test_health_and_request_id(client):
    resp = client.get("/health", headers={"X-Request-Id": "abc-123"})
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Request-Id"] == "abc-123"
    assert client.get("/health").headers.get("X-Request-Id")


def test_problem_body_carries_request_id(client):
    resp = client.get(f"{API}/cycles/missing", headers={"X-Request-Id": "trace-7"})
    assert resp.status_code == 404
    assert resp.json()["request_id"] == "trace-7"
    assert resp.headers["X-Request-Id"] == "trace-7"
