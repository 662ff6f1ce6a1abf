"""Single-use verification tokens (email verification, password reset).

A token is usable iff ``used_at IS NULL`` and ``now < expires_at``.
Consumption is one conditional UPDATE so two concurrent redemptions can't
both succeed. Functions here flush but never commit; the calling flow owns
the transaction.
"""

import logging
from datetime import timedelta

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session

from rfpdesk.core.clock import Clock, system_clock
from rfpdesk.core.errors import TokenExpiredError, TokenInvalidError
from rfpdesk.core.security import generate_token, hash_token
from rfpdesk.db.enums import TokenType
from rfpdesk.db.models import VerificationToken

logger = logging.getLogger(__name__)


def issue_token(
    db: Session,
    user_id: int,
    token_type: TokenType,
    *,
    ttl: timedelta,
    clock: Clock = system_clock,
) -> str:
    """
    Create a token row and return the raw token.

    The raw value is only ever returned here; storage keeps its digest.
    """
    raw_token = generate_token()
    now = clock.now()
    record = VerificationToken(
        user_id=user_id,
        token_hash=hash_token(raw_token),
        type=TokenType(token_type),
        expires_at=now + ttl,
        created_at=now,
    )
    db.add(record)
    db.flush()
    return raw_token


def invalidate_outstanding(
    db: Session,
    user_id: int,
    token_type: TokenType,
    *,
    clock: Clock = system_clock,
) -> int:
    """Mark every unused token of this type for the user as used.

    Returns:
        Number of tokens invalidated
    """
    stmt = (
        update(VerificationToken)
        .where(
            VerificationToken.user_id == user_id,
            VerificationToken.type == TokenType(token_type),
            VerificationToken.used_at.is_(None),
        )
        .values(used_at=clock.now())
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    return result.rowcount


def find_token(db: Session, raw_token: str) -> VerificationToken | None:
    """Look up a token record by its raw value."""
    if not raw_token:
        return None
    stmt = (
        select(VerificationToken)
        .where(VerificationToken.token_hash == hash_token(raw_token))
        .execution_options(populate_existing=True)
    )
    return db.scalars(stmt).first()


def consume_token(
    db: Session,
    raw_token: str,
    token_type: TokenType,
    *,
    clock: Clock = system_clock,
) -> VerificationToken:
    """
    Atomically mark a token as used.

    Raises:
        TokenInvalidError: unknown, wrong type, or already used
        TokenExpiredError: unused but past its expiry
    """
    if not raw_token:
        raise TokenInvalidError("Token is invalid")

    now = clock.now()
    token_hash = hash_token(raw_token)
    stmt = (
        update(VerificationToken)
        .where(
            VerificationToken.token_hash == token_hash,
            VerificationToken.type == TokenType(token_type),
            VerificationToken.used_at.is_(None),
            VerificationToken.expires_at > now,
        )
        .values(used_at=now)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    record = find_token(db, raw_token)

    if result.rowcount == 1 and record is not None:
        return record

    # Nothing matched: work out why for the caller
    if record is None or record.type != TokenType(token_type):
        logger.info("Rejected unknown %s token", TokenType(token_type).value)
        raise TokenInvalidError("Token is invalid")
    if record.used_at is not None:
        logger.info("Rejected reused %s token for user %s", record.type.value, record.user_id)
        raise TokenInvalidError("Token has already been used")
    if record.expires_at <= now:
        logger.info("Rejected expired %s token for user %s", record.type.value, record.user_id)
        raise TokenExpiredError("Token has expired")
    raise TokenInvalidError("Token is invalid")


def cleanup_tokens(db: Session, *, clock: Clock = system_clock) -> int:
    """
    Delete tokens that can never be consumed again (used or expired).

    Returns:
        Number of tokens deleted
    """
    stmt = delete(VerificationToken).where(
        or_(
            VerificationToken.used_at.isnot(None),
            VerificationToken.expires_at <= clock.now(),
        )
    )
    result = db.execute(stmt)
    db.commit()

    count = result.rowcount
    if count > 0:
        logger.info("Cleaned up %d spent verification tokens", count)
    return count
