"""Structured logging helpers (PII-safe)."""

import logging
from typing import Any


def build_log_context(
    *,
    user_id: int | str | None = None,
    email: str | None = None,
    entity: str | None = None,
    entity_id: int | str | None = None,
    reason: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict. Emails are masked."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if email:
        context["email"] = mask_email(email)
    if entity:
        context["entity"] = entity
    if entity_id:
        context["entity_id"] = str(entity_id)
    if reason:
        context["reason"] = reason
    return context


def mask_email(email: str | None) -> str:
    """Keep the first three characters of the local part and the domain."""
    if not email:
        return ""
    local, _, domain = email.partition("@")
    prefix = local[:3] if local else ""
    return f"{prefix}...@{domain}" if domain else f"{prefix}..."


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for CLI and worker processes."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
