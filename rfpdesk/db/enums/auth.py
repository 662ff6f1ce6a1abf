"""Auth-related enums."""

from enum import Enum


class TokenType(str, Enum):
    """Purpose of a single-use verification token."""

    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"
