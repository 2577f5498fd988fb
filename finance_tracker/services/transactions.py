from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas
from ..enums import TransactionCategory, TransactionType
from ..errors import NotFoundError


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert aware datetimes to naive UTC to match what the tables store."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def create_transaction(db: Session, transaction: schemas.TransactionCreate, user_id: str):
    values = transaction.model_dump(exclude={"date"})
    db_transaction = models.Transaction(
        **values, user_id=user_id, date=as_utc(transaction.date) or models.utcnow()
    )
    db.add(db_transaction)
    db.commit()
    db.refresh(db_transaction)
    return db_transaction


def get_transactions(
    db: Session,
    user_id: str,
    page: int = 1,
    limit: int = 10,
    type: Optional[TransactionType] = None,
    category: Optional[TransactionCategory] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
):
    """One page of the user's transactions, newest first, plus the total match count."""
    query = db.query(models.Transaction).filter(models.Transaction.user_id == user_id)
    if type is not None:
        query = query.filter(models.Transaction.type == type)
    if category is not None:
        query = query.filter(models.Transaction.category == category)
    if start_date is not None:
        query = query.filter(models.Transaction.date >= as_utc(start_date))
    if end_date is not None:
        query = query.filter(models.Transaction.date <= as_utc(end_date))

    total = query.count()
    items = (
        query.order_by(models.Transaction.date.desc(), models.Transaction.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


def get_transaction(db: Session, transaction_id: str, user_id: str):
    db_transaction = (
        db.query(models.Transaction)
        .filter(models.Transaction.id == transaction_id, models.Transaction.user_id == user_id)
        .first()
    )
    if db_transaction is None:
        raise NotFoundError("Transaction not found")
    return db_transaction


def update_transaction(
    db: Session, transaction_id: str, transaction: schemas.TransactionUpdate, user_id: str
):
    db_transaction = get_transaction(db, transaction_id, user_id)
    for key, value in transaction.model_dump(exclude_unset=True, exclude_none=True).items():
        if key == "date":
            value = as_utc(value)
        setattr(db_transaction, key, value)
    db.commit()
    db.refresh(db_transaction)
    return db_transaction


def delete_transaction(db: Session, transaction_id: str, user_id: str) -> None:
    db_transaction = get_transaction(db, transaction_id, user_id)
    db.delete(db_transaction)
    db.commit()


def get_stats(db: Session, user_id: str) -> dict:
    rows = (
        db.query(
            models.Transaction.type,
            models.Transaction.category,
            func.sum(models.Transaction.amount).label("total"),
        )
        .filter(models.Transaction.user_id == user_id)
        .group_by(models.Transaction.type, models.Transaction.category)
        .all()
    )

    stats = {
        "total_income": 0.0,
        "total_expenses": 0.0,
        "needs_spent": 0.0,
        "wants_spent": 0.0,
        "savings_spent": 0.0,
    }
    for tx_type, category, total in rows:
        total = float(total or 0)
        if TransactionType(tx_type) is TransactionType.INCOME:
            stats["total_income"] += total
        else:
            stats["total_expenses"] += total
            stats[f"{TransactionCategory(category).value}_spent"] += total
    stats["balance"] = stats["total_income"] - stats["total_expenses"]
    return stats
