"""HTTP client for the finance tracker API.

Wraps an ``httpx.Client``: attaches the bearer token, unwraps the response
envelope, caches GET responses until a mutation touches the same resource,
and retries reads (never writes) on transport errors and 5xx responses.
"""
import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from .derive import goal_percent, summarize_transactions
from .enums import BudgetRule, TransactionCategory, TransactionType

logger = logging.getLogger(__name__)

# largest page the transactions endpoint serves
PAGE_LIMIT = 100

# resource -> cached resources a change to it makes stale
INVALIDATES = {
    "auth": ("auth", "transactions", "budget", "goals"),
    "transactions": ("transactions", "budget"),
    "budget": ("budget",),
    "goals": ("goals",),
}


class ApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


def _resource(path: str) -> str:
    return path.strip("/").split("/", 1)[0]


def _clean(params: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (TransactionType, TransactionCategory, BudgetRule)):
            value = value.value
        cleaned[key] = value
    return cleaned


class FinanceClient:
    def __init__(
        self,
        http: httpx.Client,
        base_path: str = "/api",
        token: Optional[str] = None,
        retries: int = 2,
    ):
        self.http = http
        self.base_path = base_path.rstrip("/")
        self.token = token
        self.retries = retries
        self._cache: Dict[Tuple[str, Tuple], Any] = {}

    @classmethod
    def connect(cls, base_url: str = "http://localhost:8000", timeout: float = 10.0, **kwargs):
        return cls(httpx.Client(base_url=base_url, timeout=timeout), **kwargs)

    def close(self) -> None:
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # Plumbing
    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        return self.http.request(method, f"{self.base_path}{path}", headers=self._headers(), **kwargs)

    def _unwrap(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = None
        if response.is_success and isinstance(body, dict):
            return body
        if response.status_code == 401:
            self.token = None
            self._cache.clear()
        message = body.get("error") if isinstance(body, dict) else None
        raise ApiError(message or f"Request failed with status {response.status_code}", response.status_code, body)

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params = _clean(params or {})
        key = (path, tuple(sorted(params.items())))
        if key in self._cache:
            return self._cache[key]

        attempt = 0
        while True:
            try:
                response = self._send("GET", path, params=params)
            except httpx.TransportError as exc:
                if attempt >= self.retries:
                    raise ApiError(f"Network error: {exc}") from exc
                attempt += 1
                logger.warning("GET %s failed (%s), retry %d/%d", path, exc, attempt, self.retries)
                continue
            if response.status_code >= 500 and attempt < self.retries:
                attempt += 1
                logger.warning("GET %s returned %d, retry %d/%d", path, response.status_code, attempt, self.retries)
                continue
            break

        body = self._unwrap(response)
        self._cache[key] = body
        return body

    def _mutate(self, method: str, path: str, json: Any = None) -> Dict[str, Any]:
        try:
            response = self._send(method, path, json=json)
        except httpx.TransportError as exc:
            raise ApiError(f"Network error: {exc}") from exc
        self.invalidate(_resource(path))
        return self._unwrap(response)

    def invalidate(self, resource: Optional[str] = None) -> None:
        """Drop cached reads for a resource and whatever derives from it (all if None)."""
        if resource is None:
            self._cache.clear()
            return
        stale = INVALIDATES.get(resource, (resource,))
        for key in [k for k in self._cache if _resource(k[0]) in stale]:
            del self._cache[key]

    # Auth
    def signup(self, email: str, password: str, name: Optional[str] = None) -> Dict[str, Any]:
        data = self._mutate("POST", "/auth/signup", {"email": email, "password": password, "name": name})["data"]
        self.token = data["token"]
        return data["user"]

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._mutate("POST", "/auth/login", {"email": email, "password": password})["data"]
        self.token = data["token"]
        return data["user"]

    def logout(self) -> None:
        self.token = None
        self.invalidate()

    def forgot_password(self, email: str) -> str:
        return self._mutate("POST", "/auth/forgot-password", {"email": email})["message"]

    def reset_password(self, token: str, password: str) -> str:
        return self._mutate("POST", "/auth/reset-password", {"token": token, "password": password})["message"]

    def me(self) -> Dict[str, Any]:
        return self._get("/auth/me")["data"]["user"]

    def update_me(self, **changes) -> Dict[str, Any]:
        return self._mutate("PUT", "/auth/me", changes)["data"]["user"]

    def delete_me(self) -> None:
        self._mutate("DELETE", "/auth/me")
        self.token = None

    # Transactions
    def list_transactions(self, page: int = 1, limit: int = 10, **filters) -> Dict[str, Any]:
        body = self._get("/transactions", {"page": page, "limit": limit, **filters})
        return {"items": body["data"], "pagination": body["pagination"]}

    def get_transaction(self, transaction_id: str) -> Dict[str, Any]:
        return self._get(f"/transactions/{transaction_id}")["data"]

    def create_transaction(
        self,
        amount: float,
        type: TransactionType,
        category: TransactionCategory,
        description: str,
        date: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = _clean(
            {"amount": amount, "type": type, "category": category, "description": description, "date": date}
        )
        return self._mutate("POST", "/transactions", payload)["data"]

    def update_transaction(self, transaction_id: str, **changes) -> Dict[str, Any]:
        return self._mutate("PUT", f"/transactions/{transaction_id}", _clean(changes))["data"]

    def delete_transaction(self, transaction_id: str) -> None:
        self._mutate("DELETE", f"/transactions/{transaction_id}")

    def transaction_stats(self) -> Dict[str, Any]:
        return self._get("/transactions/stats")["data"]

    def summarize_transactions(self, **filters) -> Dict[str, float]:
        """Totals over every transaction matching ``filters``, e.g. a ``startDate``/``endDate`` window."""
        items, page = [], 1
        while True:
            result = self.list_transactions(page=page, limit=PAGE_LIMIT, **filters)
            items.extend(result["items"])
            if page >= result["pagination"]["totalPages"]:
                break
            page += 1
        return summarize_transactions(items)

    # Budget
    def get_budget(self) -> Optional[Dict[str, Any]]:
        return self._get("/budget")["data"]

    def create_budget(self, rule: BudgetRule, custom_allocation: Optional[Dict[str, float]] = None):
        return self._mutate("POST", "/budget", self._budget_payload(rule, custom_allocation))["data"]

    def update_budget(
        self, rule: Optional[BudgetRule] = None, custom_allocation: Optional[Dict[str, float]] = None
    ):
        return self._mutate("PUT", "/budget", self._budget_payload(rule, custom_allocation))["data"]

    def save_budget(self, rule: BudgetRule, custom_allocation: Optional[Dict[str, float]] = None):
        """Create the budget, or update it in place if the user already has one."""
        if self.get_budget() is None:
            return self.create_budget(rule, custom_allocation)
        return self.update_budget(rule, custom_allocation)

    def delete_budget(self) -> None:
        self._mutate("DELETE", "/budget")

    def budget_summary(self) -> Dict[str, Any]:
        return self._get("/budget/summary")["data"]

    @staticmethod
    def _budget_payload(rule, custom_allocation):
        return _clean({"rule": rule, "customAllocation": custom_allocation})

    # Goals
    def list_goals(self):
        return self._get("/goals")["data"]

    def goals_with_progress(self):
        return [{**goal, "progress": goal_percent(goal)} for goal in self.list_goals()]

    def get_goal(self, goal_id: str) -> Dict[str, Any]:
        return self._get(f"/goals/{goal_id}")["data"]

    def create_goal(
        self,
        title: str,
        target_amount: float,
        current_amount: float = 0,
        deadline: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = _clean(
            {"title": title, "targetAmount": target_amount, "currentAmount": current_amount, "deadline": deadline}
        )
        return self._mutate("POST", "/goals", payload)["data"]

    def update_goal(self, goal_id: str, **changes) -> Dict[str, Any]:
        return self._mutate("PUT", f"/goals/{goal_id}", changes)["data"]

    def contribute(self, goal_id: str, amount: float) -> Dict[str, Any]:
        return self._mutate("POST", f"/goals/{goal_id}/contributions", {"amount": amount})["data"]

    def delete_goal(self, goal_id: str) -> None:
        self._mutate("DELETE", f"/goals/{goal_id}")

    def goal_progress(self) -> Dict[str, Any]:
        return self._get("/goals/progress")["data"]
