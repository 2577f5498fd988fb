import re
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .enums import BudgetRule, TransactionCategory, TransactionType

DataT = TypeVar("DataT")

DEADLINE_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}:\d{2}(\.\d{3}(\d{3})?)?(Z|[+-]\d{2}:\d{2})?)?$"
)


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case is accepted on input too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Envelope Schemas
class Envelope(BaseModel, Generic[DataT]):
    success: bool = True
    data: Optional[DataT] = None
    message: Optional[str] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class Page(Envelope[List[DataT]], Generic[DataT]):
    pagination: Pagination


class ErrorDetail(BaseModel):
    field: str
    message: str


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
    details: Optional[List[ErrorDetail]] = None


# User Schemas
# bcrypt only reads the first 72 bytes of a password
PASSWORD_MAX_BYTES = 72


def _check_password_bytes(value):
    if value is not None and len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise PydanticCustomError(
            "password_too_long", "Password must be at most {max_bytes} bytes", {"max_bytes": PASSWORD_MAX_BYTES}
        )
    return value


class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    name: Optional[str] = Field(None, max_length=100)

    check_password = field_validator("password")(_check_password_bytes)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=72)


class ProfileUpdate(CamelModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, max_length=72)
    name: Optional[str] = Field(None, max_length=100)

    check_password = field_validator("password")(_check_password_bytes)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=8, max_length=72)

    check_password = field_validator("password")(_check_password_bytes)


class User(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    created_at: datetime


class UserData(CamelModel):
    user: User


class AuthResult(CamelModel):
    user: User
    token: str


# Transaction Schemas
class TransactionBase(CamelModel):
    amount: float = Field(gt=0)
    type: TransactionType
    category: TransactionCategory
    description: str = Field(min_length=1, max_length=200)


class TransactionCreate(TransactionBase):
    date: Optional[datetime] = None


class TransactionUpdate(CamelModel):
    amount: Optional[float] = Field(None, gt=0)
    type: Optional[TransactionType] = None
    category: Optional[TransactionCategory] = None
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    date: Optional[datetime] = None


class Transaction(TransactionBase):
    id: str
    date: datetime
    created_at: datetime
    updated_at: datetime


class TransactionStats(CamelModel):
    total_income: float
    total_expenses: float
    balance: float
    needs_spent: float
    wants_spent: float
    savings_spent: float


# Budget Schemas
class Allocation(CamelModel):
    needs: float = Field(ge=0, le=100)
    wants: float = Field(ge=0, le=100)
    savings: float = Field(ge=0, le=100)


def _check_allocation_total(value, info: ValidationInfo):
    # Only a custom rule uses the allocation; an update without a rule may target a custom budget.
    if value is None or info.data.get("rule", BudgetRule.CUSTOM) not in (None, BudgetRule.CUSTOM):
        return value
    if round(value.needs + value.wants + value.savings, 6) != 100:
        raise PydanticCustomError("allocation_total", "Needs, wants and savings must add up to 100")
    return value


class BudgetCreate(CamelModel):
    rule: BudgetRule
    custom_allocation: Optional[Allocation] = None

    check_allocation = field_validator("custom_allocation")(_check_allocation_total)

    @model_validator(mode="after")
    def require_custom_allocation(self):
        if self.rule is BudgetRule.CUSTOM and self.custom_allocation is None:
            raise PydanticCustomError(
                "allocation_missing", "A custom budget needs a customAllocation"
            )
        return self


class BudgetUpdate(CamelModel):
    rule: Optional[BudgetRule] = None
    custom_allocation: Optional[Allocation] = None

    check_allocation = field_validator("custom_allocation")(_check_allocation_total)


class Budget(CamelModel):
    id: str
    rule: BudgetRule
    needs: float
    wants: float
    savings: float
    created_at: datetime
    updated_at: datetime


class BudgetSummary(TransactionStats):
    needs_budget: float
    wants_budget: float
    savings_budget: float
    needs_remaining: float
    wants_remaining: float
    savings_remaining: float


# Goal Schemas
def _check_deadline(value):
    if value is None or value == "":
        return value
    try:
        if not DEADLINE_PATTERN.match(value):
            raise ValueError(value)
        datetime.fromisoformat(value[:-1] + "+00:00" if value.endswith("Z") else value)
    except ValueError:
        raise PydanticCustomError(
            "deadline_format", "Deadline must be a valid date (YYYY-MM-DD) or datetime"
        )
    return value


class GoalCreate(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    target_amount: float = Field(gt=0)
    current_amount: float = Field(0, ge=0)
    deadline: Optional[str] = None

    check_deadline = field_validator("deadline")(_check_deadline)


class GoalUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    target_amount: Optional[float] = Field(None, gt=0)
    current_amount: Optional[float] = Field(None, ge=0)
    deadline: Optional[str] = None

    check_deadline = field_validator("deadline")(_check_deadline)


class Contribution(CamelModel):
    amount: float = Field(gt=0)


class Goal(CamelModel):
    id: str
    title: str
    target_amount: float
    current_amount: float
    deadline: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class GoalProgress(CamelModel):
    total_goals: int
    completed_goals: int
    total_target_amount: float
    total_current_amount: float
    average_progress: float


# Health Schemas
class Health(CamelModel):
    status: str
    timestamp: datetime
    authenticated: bool
