def create_session(client, admin_headers, **body):
    r = client.post("/api/quiz-sessions", headers=admin_headers, json={"title": "Round 1", **body})
    assert r.status_code == 201
    return r.json()


def test_question_validation(client, admin_headers):
    r = client.post("/api/questions", headers=admin_headers, json={"question": "Q?", "options": ["a", "b"], "correct_answer": 0})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Invalid question data. Question and 4 options are required."
    r = client.post("/api/questions", headers=admin_headers, json={"question": "Q?", "options": ["a", "b", "c", "d"], "correct_answer": 4})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Correct answer must be between 0 and 3"


def test_questions_crud(client, admin_headers, questions):
    r = client.get("/api/questions")
    assert [q["id"] for q in r.json()] == [q["id"] for q in questions]
    assert client.get(f"/api/questions/{questions[0]['id']}").json()["correct_answer"] == 0
    r = client.delete(f"/api/questions/{questions[0]['id']}", headers=admin_headers)
    assert r.json() == {"success": True}
    assert len(client.get("/api/questions").json()) == 2
    assert client.delete(f"/api/questions/{questions[0]['id']}", headers=admin_headers).status_code == 404


def test_create_session_defaults(client, admin_headers, questions):
    s = create_session(client, admin_headers)
    assert s["status"] == "pending"
    assert s["current_question_index"] == 0
    assert s["time_per_question"] == 10
    assert s["total_questions"] == 3
    assert s["started_at"] is None
    assert create_session(client, admin_headers, time_per_question=20)["time_per_question"] == 20


def test_active_session_lifecycle(client, admin_headers, register, questions):
    assert client.get("/api/quiz-sessions/active").json() is None
    s = create_session(client, admin_headers)
    team, hdr = register()
    r = client.post(f"/api/quiz-sessions/{s['id']}/participants", headers=hdr, json={"user_id": team["id"]})
    assert r.status_code == 201
    r = client.post(f"/api/quiz-sessions/{s['id']}/participants", headers=hdr, json={"user_id": team["id"]})
    assert r.status_code == 200

    client.patch(f"/api/quiz-sessions/{s['id']}", headers=admin_headers, json={"status": "live"})
    active = client.get("/api/quiz-sessions/active").json()
    assert active["id"] == s["id"]
    assert active["participant_count"] == 1
    assert active["started_at"] is not None

    r = client.patch(f"/api/quiz-sessions/{s['id']}", headers=admin_headers, json={"status": "live", "current_question_index": 2})
    assert r.json() == {"success": True}
    assert client.get(f"/api/quiz-sessions/{s['id']}").json()["current_question_index"] == 2

    client.patch(f"/api/quiz-sessions/{s['id']}", headers=admin_headers, json={"status": "completed"})
    done = client.get(f"/api/quiz-sessions/{s['id']}").json()
    assert done["status"] == "completed" and done["ended_at"] is not None
    assert client.get("/api/quiz-sessions/active").json() is None
    assert [x["id"] for x in client.get("/api/quiz-sessions?status=completed").json()] == [s["id"]]


def test_status_is_plain_field(client, admin_headers, questions):
    s = create_session(client, admin_headers)
    client.patch(f"/api/quiz-sessions/{s['id']}", headers=admin_headers, json={"status": "completed"})
    r = client.patch(f"/api/quiz-sessions/{s['id']}", headers=admin_headers, json={"status": "pending"})
    assert r.status_code == 200
    assert client.get(f"/api/quiz-sessions/{s['id']}").json()["status"] == "pending"
    r = client.patch(f"/api/quiz-sessions/{s['id']}", headers=admin_headers, json={"status": "paused"})
    assert r.status_code == 422


def test_start_and_complete_shortcuts(client, admin_headers, questions):
    s = create_session(client, admin_headers)
    client.patch(f"/api/quiz-sessions/{s['id']}", headers=admin_headers, json={"status": "pending", "current_question_index": 2})
    started = client.post(f"/api/quiz-sessions/{s['id']}/start", headers=admin_headers).json()
    assert started["status"] == "live" and started["current_question_index"] == 0
    assert client.post(f"/api/quiz-sessions/{s['id']}/complete", headers=admin_headers).json()["status"] == "completed"


def test_answers_scores_and_responses(client, admin_headers, register, questions):
    s = create_session(client, admin_headers)
    a, ha = register("Alpha", "alpha@techfest.org")
    b, hb = register("Beta", "beta@techfest.org")
    for team, hdr in ((a, ha), (b, hb)):
        client.post(f"/api/quiz-sessions/{s['id']}/participants", headers=hdr, json={"user_id": team["id"]})

    def answer(team, hdr, q, selected):
        r = client.post("/api/user-answers", headers=hdr, json={
            "user_id": team["id"], "session_id": s["id"], "question_id": q["id"],
            "selected_answer": selected, "is_correct": selected == q["correct_answer"], "response_time": 3,
        })
        assert r.status_code == 201
        return r.json()

    answer(a, ha, questions[0], 0)
    answer(b, hb, questions[0], 1)
    answer(a, ha, questions[1], 1)

    r = client.patch(f"/api/quiz-sessions/{s['id']}/participants/{a['id']}", headers=ha, json={"score": 20})
    assert r.json() == {"success": True}
    r = client.patch(f"/api/quiz-sessions/{s['id']}/participants/{a['id']}", headers=ha, json={"score": 10})
    assert r.status_code == 200

    participants = client.get(f"/api/quiz-sessions/{s['id']}/participants").json()
    assert [p["user_name"] for p in participants] == ["Alpha", "Beta"]
    assert participants[0]["score"] == 10
    assert participants[0]["total_questions_answered"] == 2

    first = client.get(f"/api/quiz-sessions/{s['id']}/responses?question_index=0").json()
    assert {x["user_id"] for x in first} == {a["id"], b["id"]}
    assert len(client.get(f"/api/quiz-sessions/{s['id']}/responses?question_index=1").json()) == 1
    assert len(client.get(f"/api/quiz-sessions/{s['id']}/responses").json()) == 3
    assert len(client.get(f"/api/quiz-sessions/{s['id']}/responses?question_index=99").json()) == 3


def test_score_for_missing_participant(client, admin_headers, register, questions):
    s = create_session(client, admin_headers)
    team, hdr = register()
    r = client.patch(f"/api/quiz-sessions/{s['id']}/participants/{team['id']}", headers=hdr, json={"score": 10})
    assert r.status_code == 404


def test_join_unknown_session(client, register):
    team, hdr = register()
    r = client.post("/api/quiz-sessions/missing/participants", headers=hdr, json={"user_id": team["id"]})
    assert r.status_code == 404


def test_delete_session_cascades(client, admin_headers, register, questions):
    s = create_session(client, admin_headers)
    team, hdr = register()
    client.post(f"/api/quiz-sessions/{s['id']}/participants", headers=hdr, json={"user_id": team["id"]})
    assert client.delete(f"/api/quiz-sessions/{s['id']}", headers=admin_headers).json() == {"success": True}
    assert client.get(f"/api/quiz-sessions/{s['id']}").status_code == 404
    assert client.get("/api/quiz-sessions").json() == []


def test_admin_only_session_control(client, register, questions):
    _, hdr = register()
    assert client.post("/api/quiz-sessions", headers=hdr, json={"title": "x"}).status_code == 403
