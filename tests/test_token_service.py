"""Tests for single-use token storage and consumption."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from rfpdesk.core.errors import TokenExpiredError, TokenInvalidError
from rfpdesk.db.enums import TokenType


def test_consume_marks_token_used(db, make_user, clock):
    from rfpdesk.services import token_service

    user, _ = make_user()
    raw = token_service.issue_token(
        db, user.id, TokenType.PASSWORD_RESET, ttl=timedelta(hours=1), clock=clock
    )
    db.commit()

    clock.advance(minutes=5)
    record = token_service.consume_token(db, raw, TokenType.PASSWORD_RESET, clock=clock)
    db.commit()

    assert record.used_at == clock.now()
    with pytest.raises(TokenInvalidError, match="already been used"):
        token_service.consume_token(db, raw, TokenType.PASSWORD_RESET, clock=clock)


def test_token_valid_until_just_before_expiry(db, make_user, clock):
    from rfpdesk.services import token_service

    user, _ = make_user()
    raw = token_service.issue_token(
        db, user.id, TokenType.PASSWORD_RESET, ttl=timedelta(hours=1), clock=clock
    )
    clock.advance(minutes=59, seconds=59)
    token_service.consume_token(db, raw, TokenType.PASSWORD_RESET, clock=clock)


def test_expired_token_is_not_consumed(db, make_user, clock):
    from rfpdesk.services import token_service

    user, _ = make_user()
    raw = token_service.issue_token(
        db, user.id, TokenType.PASSWORD_RESET, ttl=timedelta(hours=1), clock=clock
    )
    clock.advance(hours=1)

    with pytest.raises(TokenExpiredError):
        token_service.consume_token(db, raw, TokenType.PASSWORD_RESET, clock=clock)
    assert token_service.find_token(db, raw).used_at is None


def test_wrong_type_is_invalid(db, make_user, clock):
    from rfpdesk.services import token_service

    user, _ = make_user()
    raw = token_service.issue_token(
        db, user.id, TokenType.PASSWORD_RESET, ttl=timedelta(hours=1), clock=clock
    )
    with pytest.raises(TokenInvalidError):
        token_service.consume_token(db, raw, TokenType.EMAIL_VERIFICATION, clock=clock)
    assert token_service.find_token(db, raw).used_at is None


@pytest.mark.parametrize("raw", ["", "nonexistent-token"])
def test_unknown_token_is_invalid(db, clock, raw):
    from rfpdesk.services import token_service

    with pytest.raises(TokenInvalidError):
        token_service.consume_token(db, raw, TokenType.PASSWORD_RESET, clock=clock)


def test_only_digest_is_stored(db, make_user, clock):
    from rfpdesk.core.security import hash_token
    from rfpdesk.db.models import VerificationToken
    from rfpdesk.services import token_service

    user, _ = make_user()
    raw = token_service.issue_token(
        db, user.id, TokenType.PASSWORD_RESET, ttl=timedelta(hours=1), clock=clock
    )
    stored = db.scalars(select(VerificationToken.token_hash)).all()
    assert raw not in stored
    assert hash_token(raw) in stored


def test_invalidate_outstanding_only_touches_one_type(db, make_user, clock):
    from rfpdesk.services import token_service

    user, _ = make_user()
    reset = token_service.issue_token(
        db, user.id, TokenType.PASSWORD_RESET, ttl=timedelta(hours=1), clock=clock
    )
    verify = token_service.issue_token(
        db, user.id, TokenType.EMAIL_VERIFICATION, ttl=timedelta(hours=1), clock=clock
    )

    assert token_service.invalidate_outstanding(db, user.id, TokenType.PASSWORD_RESET, clock=clock) == 1
    with pytest.raises(TokenInvalidError):
        token_service.consume_token(db, reset, TokenType.PASSWORD_RESET, clock=clock)
    token_service.consume_token(db, verify, TokenType.EMAIL_VERIFICATION, clock=clock)


def test_cleanup_tokens_removes_used_and_expired(db, make_user, clock):
    from rfpdesk.db.models import VerificationToken
    from rfpdesk.services import token_service

    # make_user leaves one used verification token behind
    user, _ = make_user()
    live = token_service.issue_token(
        db, user.id, TokenType.PASSWORD_RESET, ttl=timedelta(hours=2), clock=clock
    )
    token_service.issue_token(
        db, user.id, TokenType.EMAIL_VERIFICATION, ttl=timedelta(minutes=30), clock=clock
    )
    db.commit()
    clock.advance(hours=1)

    assert token_service.cleanup_tokens(db, clock=clock) == 2
    assert db.scalar(select(func.count()).select_from(VerificationToken)) == 1
    assert token_service.find_token(db, live) is not None


def test_deleting_user_cascades_to_tokens_and_sessions(db, make_user, clock):
    from rfpdesk.db.models import User, UserSession, VerificationToken
    from rfpdesk.services import session_service, token_service

    user, _ = make_user()
    token_service.issue_token(
        db, user.id, TokenType.PASSWORD_RESET, ttl=timedelta(hours=1), clock=clock
    )
    session_service.create_session(db, user.id, clock=clock)
    db.commit()

    db.delete(db.get(User, user.id))
    db.commit()

    assert db.scalar(select(func.count()).select_from(VerificationToken)) == 0
    assert db.scalar(select(func.count()).select_from(UserSession)) == 0
