from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..ratelimit import limiter, mutation_limit
from ..services import goals as goal_service

router = APIRouter(prefix="/goals", tags=["goals"])


@router.post("", response_model=schemas.Envelope[schemas.Goal], status_code=status.HTTP_201_CREATED)
@limiter.limit(mutation_limit)
def create_goal(
    request: Request,
    goal: schemas.GoalCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    db_goal = goal_service.create_goal(db, goal, current_user.id)
    return {"data": db_goal, "message": "Goal created successfully"}


@router.get("", response_model=schemas.Envelope[List[schemas.Goal]])
def read_goals(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return {"data": goal_service.get_goals(db, current_user.id)}


@router.get("/progress", response_model=schemas.Envelope[schemas.GoalProgress])
def read_progress(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return {"data": goal_service.get_progress(db, current_user.id)}


@router.get("/{goal_id}", response_model=schemas.Envelope[schemas.Goal])
def read_goal(
    goal_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return {"data": goal_service.get_goal(db, goal_id, current_user.id)}


@router.put("/{goal_id}", response_model=schemas.Envelope[schemas.Goal])
@limiter.limit(mutation_limit)
def update_goal(
    request: Request,
    goal_id: str,
    goal: schemas.GoalUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    db_goal = goal_service.update_goal(db, goal_id, goal, current_user.id)
    return {"data": db_goal, "message": "Goal updated successfully"}


@router.delete("/{goal_id}", response_model=schemas.Envelope)
@limiter.limit(mutation_limit)
def delete_goal(
    request: Request,
    goal_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    goal_service.delete_goal(db, goal_id, current_user.id)
    return {"message": "Goal deleted successfully"}


@router.post("/{goal_id}/contributions", response_model=schemas.Envelope[schemas.Goal])
@limiter.limit(mutation_limit)
def contribute_to_goal(
    request: Request,
    goal_id: str,
    contribution: schemas.Contribution,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    db_goal = goal_service.contribute(db, goal_id, contribution, current_user.id)
    return {"data": db_goal, "message": "Contribution added"}
