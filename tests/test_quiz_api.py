"""Integration tests for the quiz endpoints.

Covers:
  GET  /api/auth/session
  POST /api/quiz/start
  GET  /api/quiz/{id}/current
  POST /api/quiz/{id}/submit
  GET  /api/quiz/{id}/results
"""

import uuid

from fastapi.testclient import TestClient


# ── Helpers ────────────────────────────────────────────────────────────────────


def _student(client: TestClient) -> dict:
    resp = client.get("/api/auth/session")
    assert resp.status_code == 200, resp.text
    return {"X-Student-Session": resp.json()["session_token"]}


def _start(client: TestClient, headers: dict, topic_id, nickname: str | None = None) -> str:
    resp = client.post(
        "/api/quiz/start",
        json={"topic_id": str(topic_id), "student_nickname": nickname},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["quiz_session_id"]


def _correct_order(question) -> list[str]:
    return [str(i.id) for i in sorted(question.items, key=lambda i: i.correct_position)]


# ── Identity ──────────────────────────────────────────────────────────────────


def test_issue_student_session(client):
    data = client.get("/api/auth/session").json()
    assert data["token_type"] == "student_session"
    assert uuid.UUID(data["student_session_id"])


def test_quiz_requires_student_session(client, make_topic):
    topic, _ = make_topic(["A", "B"])
    resp = client.post("/api/quiz/start", json={"topic_id": str(topic.id)})
    assert resp.status_code == 401

    resp = client.post(
        "/api/quiz/start",
        json={"topic_id": str(topic.id)},
        headers={"X-Student-Session": "not-a-token"},
    )
    assert resp.status_code == 401


# ── Start ─────────────────────────────────────────────────────────────────────


def test_start_quiz(client, make_topic):
    topic, _ = make_topic(["A", "B"], ["C", "D"], name="Mitosis")
    resp = client.post(
        "/api/quiz/start",
        json={"topic_id": str(topic.id), "student_nickname": "Ada"},
        headers=_student(client),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["total_questions"] == 2
    assert data["current_question_index"] == 0
    assert data["topic"]["name"] == "Mitosis"
    assert data["topic"]["chapter_name"] == "Chapter 1"


def test_start_unknown_topic(client):
    resp = client.post(
        "/api/quiz/start", json={"topic_id": str(uuid.uuid4())}, headers=_student(client)
    )
    assert resp.status_code == 404
    body = resp.json()
    assert body["success"] is False
    assert body["error_code"] == "not_found"


def test_start_empty_topic(client, make_topic):
    topic, _ = make_topic()
    resp = client.post("/api/quiz/start", json={"topic_id": str(topic.id)}, headers=_student(client))
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "empty_topic"


# ── Current question ──────────────────────────────────────────────────────────


def test_current_question_shape(client, make_topic):
    topic, questions = make_topic(["A", "B", "C"], ["D", "E"])
    headers = _student(client)
    session_id = _start(client, headers, topic.id)

    resp = client.get(f"/api/quiz/{session_id}/current", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["is_completed"] is False
    assert data["is_last_question"] is False
    assert data["question"]["id"] == str(questions[0].id)
    assert sorted(i["text"] for i in data["question"]["items"]) == ["A", "B", "C"]
    assert all("correct_position" not in i for i in data["question"]["items"])

    again = client.get(f"/api/quiz/{session_id}/current", headers=headers).json()
    assert again["question"]["items"] == data["question"]["items"]


def test_other_student_gets_404(client, make_topic):
    topic, questions = make_topic(["A", "B"])
    owner = _student(client)
    other = _student(client)
    session_id = _start(client, owner, topic.id)

    assert client.get(f"/api/quiz/{session_id}/current", headers=other).status_code == 404
    assert client.get(f"/api/quiz/{session_id}/results", headers=other).status_code == 404
    resp = client.post(
        f"/api/quiz/{session_id}/submit",
        json={"submitted_order": _correct_order(questions[0])},
        headers=other,
    )
    assert resp.status_code == 404

    # Owner is unaffected
    data = client.get(f"/api/quiz/{session_id}/current", headers=owner).json()
    assert data["current_question_index"] == 0


# ── Submit ────────────────────────────────────────────────────────────────────


def test_submit_and_advance(client, make_topic):
    topic, questions = make_topic(["A", "B", "C", "D"], ["E", "F"])
    headers = _student(client)
    session_id = _start(client, headers, topic.id)

    a, b, c, d = _correct_order(questions[0])
    resp = client.post(
        f"/api/quiz/{session_id}/submit",
        json={"submitted_order": [b, a, c, d], "time_taken": 20},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()

    result = data["question_result"]
    assert result["score"] == 35.0
    assert result["max_score"] == 40.0
    assert result["percentage"] == 87.5
    assert result["question_title"] == "Question 1"
    assert result["explanation"] == "Explanation 1"
    assert [i["points_earned"] for i in result["item_results"]] == [7.5, 7.5, 10.0, 10.0]
    assert result["item_results"][0]["your_position"] == 1
    assert result["item_results"][0]["correct_position"] == 2

    progress = data["quiz_progress"]
    assert progress["current_question_index"] == 1
    assert progress["running_score"] == 35.0
    assert progress["is_completed"] is False

    current = client.get(f"/api/quiz/{session_id}/current", headers=headers).json()
    assert current["is_last_question"] is True
    assert current["question"]["id"] == str(questions[1].id)


def test_submit_invalid_order(client, make_topic):
    topic, questions = make_topic(["A", "B", "C"])
    headers = _student(client)
    session_id = _start(client, headers, topic.id)
    order = _correct_order(questions[0])

    resp = client.post(
        f"/api/quiz/{session_id}/submit",
        json={"submitted_order": [order[0], order[0], order[1]]},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "validation_error"

    resp = client.post(
        f"/api/quiz/{session_id}/submit", json={"submitted_order": []}, headers=headers
    )
    assert resp.status_code == 422


def test_complete_quiz_then_extra_submit(client, make_topic):
    topic, questions = make_topic(["A", "B", "C", "D"], ["E", "F", "G", "H"])
    headers = _student(client)
    session_id = _start(client, headers, topic.id, nickname="Ada")

    client.post(
        f"/api/quiz/{session_id}/submit",
        json={"submitted_order": _correct_order(questions[0])},
        headers=headers,
    )
    last = client.post(
        f"/api/quiz/{session_id}/submit",
        json={"submitted_order": list(reversed(_correct_order(questions[1])))},
        headers=headers,
    ).json()
    assert last["quiz_progress"]["is_completed"] is True
    assert last["quiz_progress"]["running_percentage"] == 75.0

    current = client.get(f"/api/quiz/{session_id}/current", headers=headers).json()
    assert current["is_completed"] is True
    assert current["question"] is None
    assert current["message"] == "Quiz already completed"

    resp = client.post(
        f"/api/quiz/{session_id}/submit",
        json={"submitted_order": _correct_order(questions[1])},
        headers=headers,
    )
    assert resp.status_code == 409
    assert resp.json()["error_code"] == "already_completed"

    results = client.get(f"/api/quiz/{session_id}/results", headers=headers).json()
    assert results["total_score"] == 60.0
    assert results["max_possible_score"] == 80.0
    assert results["percentage"] == 75.0
    assert results["answered_questions"] == 2
    assert results["is_completed"] is True
    assert results["student_nickname"] == "Ada"
    assert results["summary"]["tier"] == "good"
    assert [q["question_index"] for q in results["question_results"]] == [0, 1]


# ── Results ───────────────────────────────────────────────────────────────────


def test_partial_results(client, make_topic):
    topic, questions = make_topic(["A", "B"], ["C", "D"], ["E", "F"])
    headers = _student(client)
    session_id = _start(client, headers, topic.id)
    client.post(
        f"/api/quiz/{session_id}/submit",
        json={"submitted_order": _correct_order(questions[0])},
        headers=headers,
    )

    resp = client.get(f"/api/quiz/{session_id}/results", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["is_completed"] is False
    assert data["completed_at"] is None
    assert data["total_questions"] == 3
    assert data["answered_questions"] == 1
    assert data["percentage"] == 100.0
    assert data["question_results"][0]["item_results"][0]["feedback"].startswith("Perfect!")


def test_unknown_session(client):
    resp = client.get(f"/api/quiz/{uuid.uuid4()}/results", headers=_student(client))
    assert resp.status_code == 404


def test_retried_submit_returns_conflict(client, make_topic):
    topic, questions = make_topic(["A", "B", "C"], ["D", "E", "F"])
    headers = _student(client)
    session_id = _start(client, headers, topic.id)
    order = _correct_order(questions[0])

    first = client.post(
        f"/api/quiz/{session_id}/submit", json={"submitted_order": order}, headers=headers
    )
    assert first.status_code == 200

    retry = client.post(
        f"/api/quiz/{session_id}/submit", json={"submitted_order": order}, headers=headers
    )
    assert retry.status_code == 409
    assert retry.json()["error_code"] == "submission_conflict"

    stale = client.post(
        f"/api/quiz/{session_id}/submit",
        json={"submitted_order": _correct_order(questions[1]), "question_index": 0},
        headers=headers,
    )
    assert stale.status_code == 409
    assert stale.json()["details"]["current_question_index"] == 1

    results = client.get(f"/api/quiz/{session_id}/results", headers=headers).json()
    assert results["answered_questions"] == 1
    assert results["total_score"] == 30.0

    resp = client.post(
        f"/api/quiz/{session_id}/submit",
        json={"submitted_order": _correct_order(questions[1]), "question_index": 1},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["quiz_progress"]["is_completed"] is True
