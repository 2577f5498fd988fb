"""Pure derivations over immutable sequences of transactions and goals.

Everything here takes plain data in and returns fresh values out, so callers
recompute aggregates whenever their source list changes instead of keeping a
second copy in sync. Items may be ORM rows, pydantic models or the dicts the
HTTP client returns; both attribute and key access are supported.
"""
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .enums import BUDGET_RULE_SPLITS, BudgetRule, TransactionCategory, TransactionType

CATEGORIES = (TransactionCategory.NEEDS, TransactionCategory.WANTS, TransactionCategory.SAVINGS)


def _field(item: Any, *names: str):
    for name in names:
        if isinstance(item, Mapping):
            if name in item:
                return item[name]
        elif hasattr(item, name):
            return getattr(item, name)
    raise KeyError(names[0])


def _enum(enum_cls, value):
    return value if isinstance(value, enum_cls) else enum_cls(value)


def summarize_transactions(transactions: Iterable[Any]) -> Dict[str, float]:
    """Income, expense and per-category spend totals for a list of transactions."""
    totals = {
        "total_income": 0.0,
        "total_expenses": 0.0,
        "needs_spent": 0.0,
        "wants_spent": 0.0,
        "savings_spent": 0.0,
    }
    for tx in transactions:
        amount = float(_field(tx, "amount"))
        tx_type = _enum(TransactionType, _field(tx, "type"))
        if tx_type is TransactionType.INCOME:
            totals["total_income"] += amount
            continue
        totals["total_expenses"] += amount
        category = _enum(TransactionCategory, _field(tx, "category"))
        totals[f"{category.value}_spent"] += amount
    totals["balance"] = totals["total_income"] - totals["total_expenses"]
    return totals


def allocation_for(
    rule: BudgetRule, custom: Optional[Any] = None
) -> Tuple[float, float, float]:
    """(needs, wants, savings) percentages for a budget rule."""
    rule = _enum(BudgetRule, rule)
    if rule is BudgetRule.CUSTOM:
        if custom is None:
            raise ValueError("custom budget rule requires an allocation")
        return (
            float(_field(custom, "needs")),
            float(_field(custom, "wants")),
            float(_field(custom, "savings")),
        )
    return BUDGET_RULE_SPLITS[rule]


def budget_targets(summary: Mapping[str, float], allocation: Tuple[float, float, float]) -> Dict[str, float]:
    """Extend a transaction summary with per-category budget and remaining amounts.

    Targets are a share of total income; remaining goes negative on overspend.
    """
    result = dict(summary)
    income = summary["total_income"]
    for category, percent in zip(CATEGORIES, allocation):
        target = income * percent / 100
        result[f"{category.value}_budget"] = target
        result[f"{category.value}_remaining"] = target - summary[f"{category.value}_spent"]
    return result


def goal_percent(goal: Any) -> float:
    target = float(_field(goal, "target_amount", "targetAmount"))
    current = float(_field(goal, "current_amount", "currentAmount"))
    if target <= 0:
        return 0.0
    return current / target * 100


def goal_progress(goals: Iterable[Any]) -> Dict[str, float]:
    goals = list(goals)
    total_target = sum(float(_field(g, "target_amount", "targetAmount")) for g in goals)
    total_current = sum(float(_field(g, "current_amount", "currentAmount")) for g in goals)
    completed = sum(
        1
        for g in goals
        if float(_field(g, "current_amount", "currentAmount"))
        >= float(_field(g, "target_amount", "targetAmount"))
    )
    average = total_current / total_target * 100 if goals and total_target > 0 else 0.0
    return {
        "total_goals": len(goals),
        "completed_goals": completed,
        "total_target_amount": total_target,
        "total_current_amount": total_current,
        "average_progress": average,
    }
