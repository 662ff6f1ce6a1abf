"""Session service - login sessions with absolute expiry.

A session authorizes a request iff it exists and ``now < expires_at``.
Expired sessions are never deleted by the read path; cleanup is an explicit
sweep (see ``cleanup_all_expired_sessions`` and the CLI).
"""

import logging
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from rfpdesk.core.clock import Clock, system_clock
from rfpdesk.core.config import settings
from rfpdesk.core.errors import AuthenticationError
from rfpdesk.core.security import generate_token, hash_token
from rfpdesk.core.structured_logging import build_log_context
from rfpdesk.db.models import User, UserSession

logger = logging.getLogger(__name__)


def _ttl(ttl_hours: int | None) -> timedelta:
    return timedelta(hours=ttl_hours if ttl_hours is not None else settings.SESSION_TTL_HOURS)


def create_session(
    db: Session,
    user_id: int,
    *,
    ttl_hours: int | None = None,
    clock: Clock = system_clock,
) -> tuple[UserSession, str]:
    """
    Create a session record. Flushes but does not commit.

    Returns:
        (session record, raw session token)
    """
    raw_token = generate_token()
    now = clock.now()
    session_record = UserSession(
        user_id=user_id,
        session_token_hash=hash_token(raw_token),
        expires_at=now + _ttl(ttl_hours),
        created_at=now,
    )
    db.add(session_record)
    db.flush()

    logger.info("Created session %s for user %s", session_record.id, user_id)
    return session_record, raw_token


def get_valid_session(
    db: Session,
    token: str,
    *,
    clock: Clock = system_clock,
) -> UserSession | None:
    """
    Find an unexpired session by raw token.

    Returns None if the session doesn't exist or is expired.
    """
    if not token:
        return None
    stmt = select(UserSession).where(
        UserSession.session_token_hash == hash_token(token),
        UserSession.expires_at > clock.now(),
    )
    return db.scalars(stmt).first()


def authenticate_request(
    db: Session,
    token: str,
    *,
    clock: Clock = system_clock,
) -> User:
    """
    Resolve a session token to its active user.

    Raises:
        AuthenticationError: missing/expired session or inactive user
    """
    session_record = get_valid_session(db, token, clock=clock)
    if session_record is None:
        logger.info("Rejected request: no valid session")
        raise AuthenticationError()
    user = session_record.user
    if not user.is_active:
        logger.info(
            "Rejected request: inactive user",
            extra=build_log_context(user_id=user.id, reason="inactive"),
        )
        raise AuthenticationError()
    return user


def renew_session(
    db: Session,
    token: str,
    *,
    ttl_hours: int | None = None,
    clock: Clock = system_clock,
) -> UserSession:
    """
    Push a valid session's expiry to now + TTL. The only way expiry moves.

    Raises:
        AuthenticationError: session missing or already expired
    """
    session_record = get_valid_session(db, token, clock=clock)
    if session_record is None:
        raise AuthenticationError()
    session_record.expires_at = clock.now() + _ttl(ttl_hours)
    db.commit()
    db.refresh(session_record)
    return session_record


def list_user_sessions(
    db: Session,
    user_id: int,
    *,
    clock: Clock = system_clock,
) -> list[UserSession]:
    """List unexpired sessions for a user, newest first."""
    stmt = (
        select(UserSession)
        .where(
            UserSession.user_id == user_id,
            UserSession.expires_at > clock.now(),
        )
        .order_by(UserSession.created_at.desc(), UserSession.id.desc())
    )
    return list(db.scalars(stmt).all())


def delete_session_by_token(db: Session, token: str) -> bool:
    """
    Delete a session by its token (used during logout).

    Returns:
        True if session was found and deleted, False otherwise
    """
    if not token:
        return False
    stmt = delete(UserSession).where(UserSession.session_token_hash == hash_token(token))
    result = db.execute(stmt)
    db.commit()
    return result.rowcount > 0


def revoke_all_user_sessions(
    db: Session,
    user_id: int,
    *,
    except_token: str | None = None,
    commit: bool = True,
) -> int:
    """
    Revoke all sessions for a user (e.g., after password reset or logout all).

    Returns:
        Number of sessions revoked
    """
    conditions = [UserSession.user_id == user_id]
    if except_token:
        conditions.append(UserSession.session_token_hash != hash_token(except_token))

    stmt = delete(UserSession).where(*conditions)
    result = db.execute(stmt)
    if commit:
        db.commit()

    count = result.rowcount
    logger.info("Revoked %d sessions for user %s", count, user_id)
    return count


def cleanup_all_expired_sessions(db: Session, *, clock: Clock = system_clock) -> int:
    """
    Delete all expired sessions (scheduled job).

    Returns:
        Number of sessions deleted
    """
    stmt = delete(UserSession).where(UserSession.expires_at <= clock.now())
    result = db.execute(stmt)
    db.commit()

    count = result.rowcount
    if count > 0:
        logger.info("Cleaned up %d expired sessions", count)
    return count
