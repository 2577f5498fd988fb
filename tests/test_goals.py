def make_goal(client, headers, **overrides):
    payload = {"title": "Emergency fund", "targetAmount": 1000}
    payload.update(overrides)
    response = client.post("/api/goals", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_goal_defaults(client, auth_headers):
    goal = make_goal(client, auth_headers)
    assert goal["currentAmount"] == 0
    assert goal["deadline"] is None
    assert goal["title"] == "Emergency fund"


def test_deadline_accepts_date_and_datetime(client, auth_headers):
    by_date = make_goal(client, auth_headers, deadline="2030-06-30")
    assert by_date["deadline"].startswith("2030-06-30T00:00:00")

    by_datetime = make_goal(client, auth_headers, deadline="2030-06-30T18:00:00.000Z")
    assert by_datetime["deadline"].startswith("2030-06-30T18:00:00")

    blank = make_goal(client, auth_headers, deadline="")
    assert blank["deadline"] is None


def test_goal_validation(client, auth_headers):
    response = client.post(
        "/api/goals",
        headers=auth_headers,
        json={"title": "", "targetAmount": 0, "currentAmount": -1, "deadline": "next week"},
    )
    assert response.status_code == 400
    fields = {detail["field"] for detail in response.json()["details"]}
    assert fields == {"title", "targetAmount", "currentAmount", "deadline"}


def test_progress_aggregates(client, auth_headers):
    make_goal(client, auth_headers, title="Laptop", targetAmount=100, currentAmount=100)
    make_goal(client, auth_headers, title="Holiday", targetAmount=200, currentAmount=50)

    response = client.get("/api/goals/progress", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {
        "totalGoals": 2,
        "completedGoals": 1,
        "totalTargetAmount": 300,
        "totalCurrentAmount": 150,
        "averageProgress": 50,
    }


def test_progress_without_goals(client, auth_headers):
    data = client.get("/api/goals/progress", headers=auth_headers).json()["data"]
    assert data["totalGoals"] == 0
    assert data["averageProgress"] == 0


def test_list_newest_first(client, auth_headers):
    make_goal(client, auth_headers, title="First")
    make_goal(client, auth_headers, title="Second")
    goals = client.get("/api/goals", headers=auth_headers).json()["data"]
    assert [g["title"] for g in goals] == ["Second", "First"]


def test_update_goal_and_clear_deadline(client, auth_headers):
    goal = make_goal(client, auth_headers, deadline="2031-01-01")

    updated = client.put(
        f"/api/goals/{goal['id']}", headers=auth_headers, json={"currentAmount": 250, "title": "Rainy day"}
    ).json()["data"]
    assert updated["currentAmount"] == 250
    assert updated["title"] == "Rainy day"
    assert updated["deadline"].startswith("2031-01-01")

    cleared = client.put(f"/api/goals/{goal['id']}", headers=auth_headers, json={"deadline": None}).json()["data"]
    assert cleared["deadline"] is None
    assert cleared["currentAmount"] == 250


def test_contributions_accumulate(client, auth_headers):
    goal = make_goal(client, auth_headers, targetAmount=300, currentAmount=20)

    client.post(f"/api/goals/{goal['id']}/contributions", headers=auth_headers, json={"amount": 30})
    response = client.post(f"/api/goals/{goal['id']}/contributions", headers=auth_headers, json={"amount": 50})
    assert response.status_code == 200
    assert response.json()["data"]["currentAmount"] == 100

    rejected = client.post(f"/api/goals/{goal['id']}/contributions", headers=auth_headers, json={"amount": 0})
    assert rejected.status_code == 400


def test_delete_goal(client, auth_headers):
    goal = make_goal(client, auth_headers)
    assert client.delete(f"/api/goals/{goal['id']}", headers=auth_headers).status_code == 200
    response = client.get(f"/api/goals/{goal['id']}", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Goal not found"


def test_other_users_goals_look_missing(client, register):
    _, alice = register(email="alice@example.com")
    _, bob = register(email="bob@example.com")
    goal = make_goal(client, alice)

    assert client.get(f"/api/goals/{goal['id']}", headers=bob).status_code == 404
    assert client.put(f"/api/goals/{goal['id']}", headers=bob, json={"title": "Mine"}).status_code == 404
    assert client.post(
        f"/api/goals/{goal['id']}/contributions", headers=bob, json={"amount": 10}
    ).status_code == 404
    assert client.delete(f"/api/goals/{goal['id']}", headers=bob).status_code == 404
    assert client.get("/api/goals", headers=bob).json()["data"] == []
    assert client.get("/api/goals/progress", headers=bob).json()["data"]["totalGoals"] == 0
