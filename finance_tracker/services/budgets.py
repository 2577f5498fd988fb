from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..derive import allocation_for, budget_targets
from ..enums import BudgetRule
from ..errors import BadRequestError, ConflictError, NotFoundError
from . import transactions as transaction_service


def _apply(db_budget: models.Budget, rule: BudgetRule, allocation=None) -> None:
    needs, wants, savings = allocation_for(rule, allocation)
    db_budget.rule = rule
    db_budget.needs = needs
    db_budget.wants = wants
    db_budget.savings = savings


def get_budget(db: Session, user_id: str):
    return (
        db.query(models.Budget)
        .filter(models.Budget.user_id == user_id)
        .order_by(models.Budget.created_at.desc())
        .first()
    )


def _require_budget(db: Session, user_id: str, message: str) -> models.Budget:
    db_budget = get_budget(db, user_id)
    if db_budget is None:
        raise NotFoundError(message)
    return db_budget


def create_budget(db: Session, budget: schemas.BudgetCreate, user_id: str):
    if get_budget(db, user_id) is not None:
        raise ConflictError("User already has a budget. Update existing budget instead.")

    db_budget = models.Budget(user_id=user_id)
    _apply(db_budget, budget.rule, budget.custom_allocation)
    db.add(db_budget)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User already has a budget. Update existing budget instead.")
    db.refresh(db_budget)
    return db_budget


def update_budget(db: Session, budget: schemas.BudgetUpdate, user_id: str):
    db_budget = _require_budget(db, user_id, "Budget not found. Create a budget first.")
    rule = budget.rule or db_budget.rule
    allocation = budget.custom_allocation
    if rule is BudgetRule.CUSTOM and allocation is None:
        if db_budget.rule is not BudgetRule.CUSTOM:
            raise BadRequestError("A custom budget needs a customAllocation")
        allocation = {"needs": db_budget.needs, "wants": db_budget.wants, "savings": db_budget.savings}
    _apply(db_budget, rule, allocation)
    db.commit()
    db.refresh(db_budget)
    return db_budget


def delete_budget(db: Session, user_id: str) -> None:
    db_budget = _require_budget(db, user_id, "Budget not found")
    db.delete(db_budget)
    db.commit()


def get_summary(db: Session, user_id: str) -> dict:
    db_budget = _require_budget(db, user_id, "Budget not found. Create a budget first.")
    stats = transaction_service.get_stats(db, user_id)
    return budget_targets(stats, (db_budget.needs, db_budget.wants, db_budget.savings))
