import httpx
import pytest

from finance_tracker.client import ApiError, FinanceClient
from finance_tracker.enums import BudgetRule, TransactionCategory, TransactionType


@pytest.fixture
def api(client):
    return FinanceClient(client)


def test_full_flow_against_app(api):
    user = api.signup("zoe@example.com", "zoe-password", name="Zoe")
    assert api.token
    assert api.me()["id"] == user["id"]

    api.create_transaction(1000, TransactionType.INCOME, TransactionCategory.SAVINGS, "Salary")
    api.create_transaction(300, TransactionType.EXPENSE, TransactionCategory.NEEDS, "Rent")

    stats = api.transaction_stats()
    assert stats["balance"] == 700

    page = api.list_transactions(limit=1)
    assert len(page["items"]) == 1
    assert page["pagination"]["totalPages"] == 2

    api.save_budget(BudgetRule.FIFTY_THIRTY_TWENTY)
    api.save_budget(BudgetRule.CUSTOM, {"needs": 60, "wants": 30, "savings": 10})
    assert api.get_budget()["rule"] == "custom"
    assert api.budget_summary()["needsBudget"] == 600

    goal = api.create_goal("Car", 400, deadline="2030-01-01")
    api.contribute(goal["id"], 100)
    assert api.goal_progress()["averageProgress"] == 25


def test_mutations_refresh_cached_reads(api):
    api.signup("yan@example.com", "yan-password")
    api.create_transaction(50, TransactionType.INCOME, TransactionCategory.SAVINGS, "Gift")
    assert api.transaction_stats()["totalIncome"] == 50

    api.create_transaction(25, TransactionType.INCOME, TransactionCategory.SAVINGS, "Refund")
    assert api.transaction_stats()["totalIncome"] == 75


def test_api_errors_carry_status_and_message(api):
    api.signup("xia@example.com", "xia-password")
    with pytest.raises(ApiError) as excinfo:
        api.get_transaction("does-not-exist")
    assert excinfo.value.status == 404
    assert excinfo.value.message == "Transaction not found"


def test_unauthorized_response_drops_token(api):
    api.token = "stale"
    with pytest.raises(ApiError) as excinfo:
        api.me()
    assert excinfo.value.status == 401
    assert api.token is None


def _mock_client(handler):
    return FinanceClient(httpx.Client(transport=httpx.MockTransport(handler), base_url="http://api"))


def test_reads_are_cached_until_invalidated():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(200, json={"success": True, "data": {"totalGoals": len(calls)}})

    api = _mock_client(handler)
    assert api.goal_progress() == {"totalGoals": 1}
    assert api.goal_progress() == {"totalGoals": 1}
    assert calls == ["/api/goals/progress"]

    api.invalidate("goals")
    assert api.goal_progress() == {"totalGoals": 2}


def test_reads_retry_on_server_errors():
    attempts = []

    def handler(request):
        attempts.append(request.method)
        if len(attempts) < 3:
            return httpx.Response(503, json={"success": False, "error": "busy"})
        return httpx.Response(200, json={"success": True, "data": []})

    api = _mock_client(handler)
    assert api.list_goals() == []
    assert attempts == ["GET", "GET", "GET"]


def test_reads_give_up_after_retry_budget():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = _mock_client(handler)
    with pytest.raises(ApiError, match="Network error"):
        api.list_goals()


def test_writes_are_never_retried():
    attempts = []

    def handler(request):
        attempts.append(request.method)
        return httpx.Response(500, json={"success": False, "error": "Internal server error"})

    api = _mock_client(handler)
    with pytest.raises(ApiError) as excinfo:
        api.create_goal("Boat", 1000)
    assert excinfo.value.status == 500
    assert attempts == ["POST"]


def test_summaries_computed_from_listed_items(api):
    api.signup("wes@example.com", "wes-password")
    api.create_transaction(900, TransactionType.INCOME, TransactionCategory.SAVINGS, "Pay", date="2024-01-10T12:00:00Z")
    api.create_transaction(200, TransactionType.EXPENSE, TransactionCategory.WANTS, "Trip", date="2024-01-20T12:00:00Z")
    api.create_transaction(50, TransactionType.EXPENSE, TransactionCategory.NEEDS, "Bus", date="2024-02-05T12:00:00Z")

    january = api.summarize_transactions(startDate="2024-01-01T00:00:00Z", endDate="2024-01-31T23:59:59Z")
    assert january["total_income"] == 900
    assert january["wants_spent"] == 200
    assert january["needs_spent"] == 0
    assert api.summarize_transactions()["balance"] == 650

    goal = api.create_goal("Bike", 200, current_amount=50)
    [listed] = api.goals_with_progress()
    assert listed["id"] == goal["id"]
    assert listed["progress"] == 25


def test_partial_budget_update(api):
    api.signup("val@example.com", "val-password")
    api.create_budget(BudgetRule.CUSTOM, {"needs": 40, "wants": 40, "savings": 20})
    updated = api.update_budget(custom_allocation={"needs": 30, "wants": 30, "savings": 40})
    assert updated["rule"] == "custom"
    assert updated["savings"] == 40
