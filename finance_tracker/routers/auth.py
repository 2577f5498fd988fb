from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..mailer import get_mailer
from ..ratelimit import auth_limit, limiter, mutation_limit
from ..services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/signup", response_model=schemas.Envelope[schemas.AuthResult], status_code=status.HTTP_201_CREATED
)
@limiter.limit(auth_limit)
def signup(request: Request, payload: schemas.SignupRequest, db: Session = Depends(get_db)):
    result = auth_service.signup(db, payload)
    return {"data": result, "message": "User created successfully"}


@router.post("/login", response_model=schemas.Envelope[schemas.AuthResult])
@limiter.limit(auth_limit)
def login(request: Request, payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    result = auth_service.login(db, payload)
    return {"data": result, "message": "Login successful"}


@router.post("/forgot-password", response_model=schemas.Envelope)
@limiter.limit(auth_limit)
def forgot_password(
    request: Request,
    payload: schemas.ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mailer=Depends(get_mailer),
):
    auth_service.request_password_reset(db, payload.email, mailer)
    return {"message": "If that email is registered, a password reset link has been sent"}


@router.post("/reset-password", response_model=schemas.Envelope)
@limiter.limit(auth_limit)
def reset_password(request: Request, payload: schemas.ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(db, payload)
    return {"message": "Password has been reset successfully"}


@router.get("/me", response_model=schemas.Envelope[schemas.UserData])
def read_profile(current_user: models.User = Depends(get_current_user)):
    return {"data": {"user": current_user}}


@router.put("/me", response_model=schemas.Envelope[schemas.UserData])
@limiter.limit(mutation_limit)
def update_profile(
    request: Request,
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    user = auth_service.update_profile(db, current_user.id, payload)
    return {"data": {"user": user}, "message": "Profile updated successfully"}


@router.delete("/me", response_model=schemas.Envelope)
@limiter.limit(mutation_limit)
def delete_account(
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    auth_service.delete_account(db, current_user.id)
    return {"message": "Account deleted successfully"}
