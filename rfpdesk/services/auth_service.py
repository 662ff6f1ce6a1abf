"""Authentication service - registration, verification, password reset, login.

Every login failure surfaces as the same ``AuthenticationError``; the real
cause (unknown email, wrong password, inactive account) only goes to logs.
"""

import logging
from datetime import timedelta

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rfpdesk.core.clock import Clock, system_clock
from rfpdesk.core.config import settings
from rfpdesk.core.errors import AuthenticationError, ValidationError
from rfpdesk.core.security import PasswordHasher, default_hasher
from rfpdesk.core.structured_logging import build_log_context
from rfpdesk.db.enums import TokenType
from rfpdesk.db.models import User, UserSession
from rfpdesk.services import session_service, token_service

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(email: str | None) -> str:
    """Validate an email address and return it lowercased."""
    if not email or not email.strip():
        raise ValidationError("email is required")
    try:
        normalized = _email_adapter.validate_python(email.strip())
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid email address: {email!r}") from exc
    return normalized.lower()


def validate_password(password: str | None) -> None:
    if not password:
        raise ValidationError("password is required")
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
        )


def get_user_by_email(db: Session, email: str) -> User | None:
    """Case-insensitive lookup; malformed addresses simply don't match."""
    if not email:
        return None
    return db.scalars(
        select(User).where(func.lower(User.email) == email.strip().lower())
    ).first()


def _verification_ttl() -> timedelta:
    return timedelta(hours=settings.EMAIL_VERIFICATION_TOKEN_TTL_HOURS)


def _reset_ttl() -> timedelta:
    return timedelta(hours=settings.PASSWORD_RESET_TOKEN_TTL_HOURS)


# =============================================================================
# Registration & verification
# =============================================================================


def register_user(
    db: Session,
    email: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
    *,
    hasher: PasswordHasher = default_hasher,
    clock: Clock = system_clock,
) -> tuple[User, str]:
    """
    Create an inactive, unverified user and an email verification token.

    Returns:
        (user, raw verification token)

    Raises:
        ValidationError: malformed email, short password, or duplicate email
    """
    normalized = normalize_email(email)
    validate_password(password)

    if get_user_by_email(db, normalized) is not None:
        logger.info(
            "Registration rejected: duplicate email",
            extra=build_log_context(email=normalized, reason="duplicate"),
        )
        raise ValidationError("An account with this email already exists")

    now = clock.now()
    user = User(
        email=normalized,
        first_name=first_name.strip() if first_name else None,
        last_name=last_name.strip() if last_name else None,
        password_hash=hasher.hash(password),
        is_active=False,
        email_verified=False,
        created_at=now,
        updated_at=now,
    )
    try:
        db.add(user)
        db.flush()
        raw_token = token_service.issue_token(
            db, user.id, TokenType.EMAIL_VERIFICATION, ttl=_verification_ttl(), clock=clock
        )
        db.commit()
    except IntegrityError as exc:
        # Lost a race with another registration for the same address
        db.rollback()
        logger.info(
            "Registration rejected: duplicate email",
            extra=build_log_context(email=normalized, reason="duplicate"),
        )
        raise ValidationError("An account with this email already exists") from exc

    db.refresh(user)
    logger.info("Registered user %s", user.id, extra=build_log_context(email=normalized))
    return user, raw_token


def verify_email(db: Session, raw_token: str, *, clock: Clock = system_clock) -> User:
    """
    Consume a verification token and activate the account.

    Raises:
        TokenExpiredError, TokenInvalidError
    """
    try:
        record = token_service.consume_token(
            db, raw_token, TokenType.EMAIL_VERIFICATION, clock=clock
        )
        user = db.get(User, record.user_id)
        user.email_verified = True
        user.is_active = True
        user.updated_at = clock.now()
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("Verified email for user %s", user.id)
    return user


def resend_verification(
    db: Session,
    email: str,
    *,
    clock: Clock = system_clock,
) -> str | None:
    """
    Issue a fresh verification token, invalidating outstanding ones.

    Returns None for unknown or already verified accounts.
    """
    user = get_user_by_email(db, email)
    if user is None or user.email_verified:
        logger.info(
            "Verification resend skipped",
            extra=build_log_context(
                email=email, reason="unknown" if user is None else "already_verified"
            ),
        )
        return None

    token_service.invalidate_outstanding(
        db, user.id, TokenType.EMAIL_VERIFICATION, clock=clock
    )
    raw_token = token_service.issue_token(
        db, user.id, TokenType.EMAIL_VERIFICATION, ttl=_verification_ttl(), clock=clock
    )
    db.commit()
    return raw_token


# =============================================================================
# Password reset
# =============================================================================


def request_password_reset(
    db: Session,
    email: str,
    *,
    clock: Clock = system_clock,
) -> str | None:
    """
    Issue a password reset token; at most one is live per user.

    Unknown emails return None without raising so callers can't probe for
    accounts.
    """
    user = get_user_by_email(db, email)
    if user is None:
        logger.info(
            "Password reset requested for unknown email",
            extra=build_log_context(email=email, reason="unknown"),
        )
        return None

    token_service.invalidate_outstanding(db, user.id, TokenType.PASSWORD_RESET, clock=clock)
    raw_token = token_service.issue_token(
        db, user.id, TokenType.PASSWORD_RESET, ttl=_reset_ttl(), clock=clock
    )
    db.commit()
    logger.info("Issued password reset token for user %s", user.id)
    return raw_token


def reset_password(
    db: Session,
    raw_token: str,
    new_password: str,
    *,
    hasher: PasswordHasher = default_hasher,
    clock: Clock = system_clock,
) -> User:
    """
    Consume a reset token, set the new password and revoke every session.

    Raises:
        ValidationError: new password too short
        TokenExpiredError, TokenInvalidError
    """
    validate_password(new_password)

    try:
        record = token_service.consume_token(
            db, raw_token, TokenType.PASSWORD_RESET, clock=clock
        )
        user = db.get(User, record.user_id)
        user.password_hash = hasher.hash(new_password)
        user.updated_at = clock.now()
        session_service.revoke_all_user_sessions(db, user.id, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("Password reset for user %s", user.id)
    return user


# =============================================================================
# Login / logout
# =============================================================================


def login(
    db: Session,
    email: str,
    password: str,
    *,
    hasher: PasswordHasher = default_hasher,
    clock: Clock = system_clock,
) -> tuple[UserSession, str]:
    """
    Check credentials and open a session.

    Returns:
        (session record, raw session token)

    Raises:
        AuthenticationError: for every failure, with the same message
    """
    user = get_user_by_email(db, email)

    reason = None
    if user is None:
        reason = "unknown_email"
    elif not hasher.verify(password or "", user.password_hash or ""):
        reason = "bad_password"
    elif not user.is_active:
        reason = "inactive"

    if reason is not None:
        logger.info(
            "Login failed",
            extra=build_log_context(
                user_id=user.id if user else None, email=email, reason=reason
            ),
        )
        raise AuthenticationError()

    now = clock.now()
    session_record, raw_token = session_service.create_session(db, user.id, clock=clock)
    user.last_login_at = now
    db.commit()
    db.refresh(session_record)

    logger.info("User %s logged in", user.id)
    return session_record, raw_token


def logout(db: Session, token: str) -> bool:
    """End one session. Returns False if it was already gone."""
    return session_service.delete_session_by_token(db, token)


def logout_everywhere(db: Session, user_id: int) -> int:
    """Revoke every session for a user."""
    return session_service.revoke_all_user_sessions(db, user_id)
