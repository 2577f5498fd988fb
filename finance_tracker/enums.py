"""Enumerations shared by the models, the request schemas and the client.

Each member's value is its wire format, so there is exactly one spelling of
every type, category and budget rule.
"""
import enum


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionCategory(str, enum.Enum):
    NEEDS = "needs"
    WANTS = "wants"
    SAVINGS = "savings"


class BudgetRule(str, enum.Enum):
    FIFTY_THIRTY_TWENTY = "50/30/20"
    SIXTY_TWENTY_TWENTY = "60/20/20"
    SEVENTY_TWENTY_TEN = "70/20/10"
    CUSTOM = "custom"


# needs, wants, savings
BUDGET_RULE_SPLITS = {
    BudgetRule.FIFTY_THIRTY_TWENTY: (50.0, 30.0, 20.0),
    BudgetRule.SIXTY_TWENTY_TWENTY: (60.0, 20.0, 20.0),
    BudgetRule.SEVENTY_TWENTY_TEN: (70.0, 20.0, 10.0),
}
