import math
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..enums import TransactionCategory, TransactionType
from ..ratelimit import limiter, mutation_limit
from ..services import transactions as transaction_service

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post(
    "", response_model=schemas.Envelope[schemas.Transaction], status_code=status.HTTP_201_CREATED
)
@limiter.limit(mutation_limit)
def create_transaction(
    request: Request,
    transaction: schemas.TransactionCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    db_transaction = transaction_service.create_transaction(db, transaction, current_user.id)
    return {"data": db_transaction, "message": "Transaction created successfully"}


@router.get("", response_model=schemas.Page[schemas.Transaction])
def read_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: Optional[TransactionType] = None,
    category: Optional[TransactionCategory] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    items, total = transaction_service.get_transactions(
        db,
        current_user.id,
        page=page,
        limit=limit,
        type=type,
        category=category,
        start_date=start_date,
        end_date=end_date,
    )
    return {
        "data": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


@router.get("/stats", response_model=schemas.Envelope[schemas.TransactionStats])
def read_stats(
    db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)
):
    return {"data": transaction_service.get_stats(db, current_user.id)}


@router.get("/{transaction_id}", response_model=schemas.Envelope[schemas.Transaction])
def read_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return {"data": transaction_service.get_transaction(db, transaction_id, current_user.id)}


@router.put("/{transaction_id}", response_model=schemas.Envelope[schemas.Transaction])
@limiter.limit(mutation_limit)
def update_transaction(
    request: Request,
    transaction_id: str,
    transaction: schemas.TransactionUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    db_transaction = transaction_service.update_transaction(
        db, transaction_id, transaction, current_user.id
    )
    return {"data": db_transaction, "message": "Transaction updated successfully"}


@router.delete("/{transaction_id}", response_model=schemas.Envelope)
@limiter.limit(mutation_limit)
def delete_transaction(
    request: Request,
    transaction_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    transaction_service.delete_transaction(db, transaction_id, current_user.id)
    return {"message": "Transaction deleted successfully"}
