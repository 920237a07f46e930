"""Authentication API endpoints."""

import logging
from typing import Annotated

import redis
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from libala.api.dependencies import (
    get_local_strategy,
    get_optional_user,
    get_session_manager,
    rate_limit,
)
from libala.database import get_db
from libala.models.user import User
from libala.schemas.auth import (
    EmailRequest,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    SignupResponse,
    UserResponse,
    UserSummary,
)
from libala.services.auth import (
    Credentials,
    LocalStrategy,
    create_user,
    get_user_by_email,
    request_password_reset,
    request_verification_resend,
    reset_password,
    verify_email,
)
from libala.services.auth_emails import send_password_reset_email, send_verification_email
from libala.services.errors import EmailNotVerifiedError, InvalidCredentialsError, InvalidTokenError
from libala.services.sessions import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

EMAIL_IN_USE = "This email is already in use."
RESEND_MESSAGE = "If the account exists and is not verified yet, a verification email has been sent."
FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, you will receive a reset link."


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("signup"))],
)
async def signup(
    user_data: SignupRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Create an unverified account and email its verification link."""
    if get_user_by_email(db, user_data.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=EMAIL_IN_USE)

    try:
        user, raw_token = create_user(
            db,
            user_data.email,
            user_data.password,
            user_data.first_name,
            user_data.last_name,
        )
    except IntegrityError:
        # Concurrent signup with the same email won the unique constraint
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=EMAIL_IN_USE
        ) from None

    send_verification_email(user.email, user.first_name, raw_token)

    return SignupResponse(
        message="Signup successful. Check your email to activate your account.",
        user=UserSummary.model_validate(user),
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(rate_limit("login"))],
)
async def login(
    credentials: LoginRequest,
    response: Response,
    strategy: Annotated[LocalStrategy, Depends(get_local_strategy)],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Login with email and password; sets the session cookie."""
    try:
        user = strategy.authenticate(Credentials(credentials.email, credentials.password))
    except EmailNotVerifiedError as e:
        # The client reads canResend from the top level of the body
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"message": e.message, "canResend": True, "email": e.email},
        )
    except InvalidCredentialsError as e:
        logger.warning("Failed login attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message) from None

    sessions.create(response, user.id)
    logger.info(f"User {user.id} logged in")

    return LoginResponse(message="Login successful.", user=UserResponse.model_validate(user))


@router.get("/verify-email", response_model=MessageResponse)
async def verify_email_address(
    db: Annotated[Session, Depends(get_db)],
    token: str | None = None,
):
    """Confirm an email address with the token from the emailed link."""
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing token.")

    try:
        verify_email(db, token)
    except InvalidTokenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from None

    return MessageResponse(message="Your email has been verified. You can now log in.")


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit("resend_verification"))],
)
async def resend_verification(
    data: EmailRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Send a new verification link; the response never reveals the account state."""
    issued = request_verification_resend(db, data.email)
    if issued is not None:
        user, raw_token = issued
        send_verification_email(user.email, user.first_name, raw_token)

    return MessageResponse(message=RESEND_MESSAGE)


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit("forgot_password"))],
)
async def forgot_password(
    data: EmailRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Email a reset link if the account exists; same response either way."""
    issued = request_password_reset(db, data.email)
    if issued is not None:
        user, raw_token = issued
        send_password_reset_email(user.email, raw_token)

    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password_with_token(
    data: ResetPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Set a new password with the token from the emailed link."""
    try:
        reset_password(db, data.token, data.password)
    except InvalidTokenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from None

    return MessageResponse(message="Your password has been reset.")


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    response: Response,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Destroy the current session."""
    try:
        sessions.destroy(request, response)
    except redis.RedisError as e:
        logger.error(f"Logout failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Logout failed.",
        ) from None

    return LogoutResponse(success=True)


@router.get("/me", response_model=UserResponse | None)
async def get_me(
    current_user: Annotated[User | None, Depends(get_optional_user)],
):
    """Get the current user, or null when there is no session."""
    return current_user
