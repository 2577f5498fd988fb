import logging
import secrets
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import create_access_token, get_password_hash, verify_password
from ..config import get_settings
from ..errors import AuthenticationError, BadRequestError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def get_user(db: Session, user_id: str):
    return db.query(models.User).filter(models.User.id == user_id).first()


def _auth_result(user: models.User) -> dict:
    return {"user": user, "token": create_access_token(user.id, user.email)}


def signup(db: Session, payload: schemas.SignupRequest) -> dict:
    if get_user_by_email(db, payload.email):
        raise ConflictError("User with this email already exists")

    user = models.User(
        email=payload.email,
        name=payload.name,
        password_hash=get_password_hash(payload.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this email already exists")
    db.refresh(user)
    logger.info("New user signed up: %s", user.id)
    return _auth_result(user)


def login(db: Session, payload: schemas.LoginRequest) -> dict:
    user = get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login attempt")
        raise AuthenticationError(INVALID_CREDENTIALS)
    return _auth_result(user)


def get_profile(db: Session, user_id: str) -> models.User:
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def update_profile(db: Session, user_id: str, payload: schemas.ProfileUpdate) -> models.User:
    user = get_profile(db, user_id)

    if payload.email and payload.email != user.email:
        existing = get_user_by_email(db, payload.email)
        if existing and existing.id != user_id:
            raise ConflictError("Email already in use")
        user.email = payload.email
    if payload.password:
        user.password_hash = get_password_hash(payload.password)
    if "name" in payload.model_fields_set:
        user.name = payload.name

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email already in use")
    db.refresh(user)
    return user


def delete_account(db: Session, user_id: str) -> None:
    user = get_profile(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("Deleted account %s", user_id)


def request_password_reset(db: Session, email: str, mailer) -> None:
    """Issue a reset token if the account exists. Succeeds silently if it does not."""
    user = get_user_by_email(db, email)
    if user is None:
        return

    user.password_reset_token = secrets.token_hex(32)
    user.password_reset_expires = models.utcnow() + timedelta(
        minutes=get_settings().password_reset_minutes
    )
    db.commit()
    mailer.send_password_reset(user.email, user.password_reset_token)


def reset_password(db: Session, payload: schemas.ResetPasswordRequest) -> None:
    user = (
        db.query(models.User)
        .filter(models.User.password_reset_token == payload.token)
        .first()
    )
    if (
        user is None
        or user.password_reset_expires is None
        or user.password_reset_expires < models.utcnow()
    ):
        raise BadRequestError("Invalid or expired reset token")

    user.password_hash = get_password_hash(payload.password)
    user.password_reset_token = None
    user.password_reset_expires = None
    db.commit()
    logger.info("Password reset completed for %s", user.id)
