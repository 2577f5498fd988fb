import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .. import models, schemas
from ..derive import goal_progress
from ..errors import NotFoundError
from .transactions import as_utc

logger = logging.getLogger(__name__)


def parse_deadline(value: Optional[str]) -> Optional[datetime]:
    """'YYYY-MM-DD' or an ISO datetime; blank means no deadline."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(value))


def create_goal(db: Session, goal: schemas.GoalCreate, user_id: str):
    values = goal.model_dump(exclude={"deadline"})
    db_goal = models.Goal(**values, user_id=user_id, deadline=parse_deadline(goal.deadline))
    db.add(db_goal)
    db.commit()
    db.refresh(db_goal)
    return db_goal


def get_goals(db: Session, user_id: str):
    return (
        db.query(models.Goal)
        .filter(models.Goal.user_id == user_id)
        .order_by(models.Goal.created_at.desc())
        .all()
    )


def get_goal(db: Session, goal_id: str, user_id: str, for_update: bool = False):
    query = db.query(models.Goal).filter(models.Goal.id == goal_id, models.Goal.user_id == user_id)
    if for_update:
        query = query.with_for_update()
    db_goal = query.first()
    if db_goal is None:
        raise NotFoundError("Goal not found")
    return db_goal


def update_goal(db: Session, goal_id: str, goal: schemas.GoalUpdate, user_id: str):
    db_goal = get_goal(db, goal_id, user_id)
    changes = goal.model_dump(exclude_unset=True)
    if "deadline" in changes:
        db_goal.deadline = parse_deadline(changes.pop("deadline"))
    for key, value in changes.items():
        if value is not None:
            setattr(db_goal, key, value)
    db.commit()
    db.refresh(db_goal)
    return db_goal


def delete_goal(db: Session, goal_id: str, user_id: str) -> None:
    db_goal = get_goal(db, goal_id, user_id)
    db.delete(db_goal)
    db.commit()


def contribute(db: Session, goal_id: str, contribution: schemas.Contribution, user_id: str):
    """Add to a goal's saved amount; the row stays locked between read and write."""
    db_goal = get_goal(db, goal_id, user_id, for_update=True)
    db_goal.current_amount = db_goal.current_amount + contribution.amount
    db.commit()
    db.refresh(db_goal)
    logger.debug("Goal %s now at %.2f of %.2f", goal_id, db_goal.current_amount, db_goal.target_amount)
    return db_goal


def get_progress(db: Session, user_id: str) -> dict:
    return goal_progress(get_goals(db, user_id))
