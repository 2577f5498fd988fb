def make_transaction(client, headers, **overrides):
    payload = {"amount": 25.5, "type": "expense", "category": "needs", "description": "Groceries"}
    payload.update(overrides)
    response = client.post("/api/transactions", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_transaction_defaults_date(client, auth_headers):
    response = client.post(
        "/api/transactions",
        headers=auth_headers,
        json={"amount": 42, "type": "expense", "category": "wants", "description": "Cinema"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Transaction created successfully"
    tx = body["data"]
    assert tx["amount"] == 42
    assert tx["type"] == "expense"
    assert tx["category"] == "wants"
    assert tx["date"]
    assert set(tx) == {"id", "amount", "type", "category", "description", "date", "createdAt", "updatedAt"}


def test_create_transaction_keeps_given_date(client, auth_headers):
    tx = make_transaction(client, auth_headers, date="2024-03-05T12:30:00Z")
    assert tx["date"].startswith("2024-03-05T12:30:00")


def test_invalid_transaction_reports_every_field(client, auth_headers):
    response = client.post(
        "/api/transactions",
        headers=auth_headers,
        json={"amount": -5, "type": "gift", "category": "needs", "description": ""},
    )
    assert response.status_code == 400
    fields = {detail["field"] for detail in response.json()["details"]}
    assert fields == {"amount", "type", "description"}

    listed = client.get("/api/transactions", headers=auth_headers).json()
    assert listed["pagination"]["total"] == 0


def test_stats_round_trip(client, auth_headers):
    make_transaction(client, auth_headers, amount=1000, type="income", category="savings", description="Salary")
    make_transaction(client, auth_headers, amount=300, type="expense", category="needs", description="Rent")

    response = client.get("/api/transactions/stats", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {
        "totalIncome": 1000,
        "totalExpenses": 300,
        "balance": 700,
        "needsSpent": 300,
        "wantsSpent": 0,
        "savingsSpent": 0,
    }


def test_pagination(client, auth_headers):
    for day in range(1, 16):
        make_transaction(client, auth_headers, description=f"Day {day}", date=f"2024-01-{day:02d}T09:00:00")

    first = client.get("/api/transactions", headers=auth_headers, params={"limit": 10}).json()
    assert len(first["data"]) == 10
    assert first["pagination"] == {"page": 1, "limit": 10, "total": 15, "totalPages": 2}
    assert first["data"][0]["description"] == "Day 15"

    second = client.get("/api/transactions", headers=auth_headers, params={"limit": 10, "page": 2}).json()
    assert len(second["data"]) == 5
    assert second["data"][-1]["description"] == "Day 1"

    ids = {tx["id"] for tx in first["data"]} | {tx["id"] for tx in second["data"]}
    assert len(ids) == 15


def test_list_filters(client, auth_headers):
    make_transaction(client, auth_headers, type="income", category="savings", description="Paycheck", date="2024-02-01T00:00:00Z")
    make_transaction(client, auth_headers, category="wants", description="Games", date="2024-02-10T00:00:00Z")
    make_transaction(client, auth_headers, category="needs", description="Power bill", date="2024-03-01T00:00:00Z")

    expenses = client.get("/api/transactions", headers=auth_headers, params={"type": "expense"}).json()
    assert {tx["description"] for tx in expenses["data"]} == {"Games", "Power bill"}

    wants = client.get("/api/transactions", headers=auth_headers, params={"category": "wants"}).json()
    assert [tx["description"] for tx in wants["data"]] == ["Games"]

    february = client.get(
        "/api/transactions",
        headers=auth_headers,
        params={"startDate": "2024-02-01T00:00:00Z", "endDate": "2024-02-28T23:59:59Z"},
    ).json()
    assert {tx["description"] for tx in february["data"]} == {"Paycheck", "Games"}
    assert february["pagination"]["total"] == 2


def test_list_rejects_bad_query(client, auth_headers):
    response = client.get("/api/transactions", headers=auth_headers, params={"limit": 500, "page": 0})
    assert response.status_code == 400
    fields = {detail["field"] for detail in response.json()["details"]}
    assert fields == {"limit", "page"}


def test_update_and_delete(client, auth_headers):
    tx = make_transaction(client, auth_headers)

    updated = client.put(
        f"/api/transactions/{tx['id']}", headers=auth_headers, json={"amount": 99.99, "category": "wants"}
    )
    assert updated.status_code == 200
    data = updated.json()["data"]
    assert data["amount"] == 99.99
    assert data["category"] == "wants"
    assert data["description"] == tx["description"]

    fetched = client.get(f"/api/transactions/{tx['id']}", headers=auth_headers)
    assert fetched.json()["data"]["amount"] == 99.99

    deleted = client.delete(f"/api/transactions/{tx['id']}", headers=auth_headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True, "data": None, "message": "Transaction deleted successfully"}

    missing = client.get(f"/api/transactions/{tx['id']}", headers=auth_headers)
    assert missing.status_code == 404


def test_other_users_transactions_look_missing(client, register):
    _, alice = register(email="alice@example.com")
    _, bob = register(email="bob@example.com")
    tx = make_transaction(client, alice)

    for response in (
        client.get(f"/api/transactions/{tx['id']}", headers=bob),
        client.put(f"/api/transactions/{tx['id']}", headers=bob, json={"amount": 1}),
        client.delete(f"/api/transactions/{tx['id']}", headers=bob),
    ):
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Transaction not found"}

    assert client.get("/api/transactions", headers=bob).json()["pagination"]["total"] == 0
    assert client.get(f"/api/transactions/{tx['id']}", headers=alice).json()["data"]["amount"] == 25.5
