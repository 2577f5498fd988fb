from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..ratelimit import limiter, mutation_limit
from ..services import budgets as budget_service

router = APIRouter(prefix="/budget", tags=["budget"])


@router.post("", response_model=schemas.Envelope[schemas.Budget], status_code=status.HTTP_201_CREATED)
@limiter.limit(mutation_limit)
def create_budget(
    request: Request,
    budget: schemas.BudgetCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    db_budget = budget_service.create_budget(db, budget, current_user.id)
    return {"data": db_budget, "message": "Budget created successfully"}


@router.get("", response_model=schemas.Envelope[schemas.Budget])
def read_budget(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    db_budget = budget_service.get_budget(db, current_user.id)
    if db_budget is None:
        return {"data": None, "message": "No budget found"}
    return {"data": db_budget}


@router.put("", response_model=schemas.Envelope[schemas.Budget])
@limiter.limit(mutation_limit)
def update_budget(
    request: Request,
    budget: schemas.BudgetUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    db_budget = budget_service.update_budget(db, budget, current_user.id)
    return {"data": db_budget, "message": "Budget updated successfully"}


@router.delete("", response_model=schemas.Envelope)
@limiter.limit(mutation_limit)
def delete_budget(
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    budget_service.delete_budget(db, current_user.id)
    return {"message": "Budget deleted successfully"}


@router.get("/summary", response_model=schemas.Envelope[schemas.BudgetSummary])
def read_summary(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return {"data": budget_service.get_summary(db, current_user.id)}
