"""CLI tools for rfpdesk administration and scheduled sweeps."""

import click

from rfpdesk.core.config import settings
from rfpdesk.core.errors import RfpDeskError
from rfpdesk.core.structured_logging import configure_logging
from rfpdesk.db.session import SessionLocal, init_db
from rfpdesk.schemas.branding import BrandingSettingsUpdate
from rfpdesk.schemas.template import TemplateCreate
from rfpdesk.services import (
    branding_service,
    session_service,
    template_service,
    token_service,
)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL for this run")
def cli(log_level: str | None):
    """rfpdesk CLI tools."""
    configure_logging(log_level or settings.LOG_LEVEL)


@cli.command("init-db")
def init_db_command():
    """Create all tables (development; production uses `alembic upgrade head`)."""
    init_db()
    click.echo("✓ Database tables created")


@cli.command("reap-sessions")
def reap_sessions():
    """Delete expired login sessions."""
    db = SessionLocal()
    try:
        count = session_service.cleanup_all_expired_sessions(db)
        click.echo(f"✓ Deleted {count} expired session(s)")
    finally:
        db.close()


@cli.command("reap-tokens")
def reap_tokens():
    """Delete used or expired verification/reset tokens."""
    db = SessionLocal()
    try:
        count = token_service.cleanup_tokens(db)
        click.echo(f"✓ Deleted {count} spent token(s)")
    finally:
        db.close()


@cli.command("create-template")
@click.option("--name", required=True, help="Template name")
@click.option("--category", default="general", show_default=True, help="Template category")
@click.option("--description", default=None, help="Short description")
@click.option(
    "--content-file",
    required=True,
    type=click.File("r", encoding="utf-8"),
    help="File with the template body ('-' for stdin)",
)
def create_template(name: str, category: str, description: str | None, content_file):
    """
    Create a reusable content template.

    Example:
        rfpdesk create-template --name "Cover letter" --content-file cover.md
    """
    db = SessionLocal()
    try:
        template = template_service.create_template(
            db,
            TemplateCreate(
                name=name,
                description=description,
                content=content_file.read(),
                category=category,
            ),
        )
        click.echo(f"✓ Created template: {template.name}")
        click.echo(f"  ID: {template.id}")
        click.echo(f"  Category: {template.category}")
    except RfpDeskError as e:
        db.rollback()
        click.echo(f"❌ Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        db.close()


@cli.command("set-branding")
@click.option("--company-name", default=None, help="Company name shown on proposals")
@click.option("--logo-url", default=None, help="Logo URL")
@click.option("--primary-color", default=None, help="Primary color (#RRGGBB)")
@click.option("--secondary-color", default=None, help="Secondary color (#RRGGBB)")
@click.option("--font-family", default=None, help="Font family")
def set_branding(
    company_name: str | None,
    logo_url: str | None,
    primary_color: str | None,
    secondary_color: str | None,
    font_family: str | None,
):
    """Create or update the branding settings. Only given options change."""
    options = {
        "company_name": company_name,
        "logo_url": logo_url,
        "primary_color": primary_color,
        "secondary_color": secondary_color,
        "font_family": font_family,
    }
    changes = {key: value for key, value in options.items() if value is not None}
    if not changes:
        click.echo("Nothing to update", err=True)
        raise SystemExit(1)

    db = SessionLocal()
    try:
        branding = branding_service.update_branding(db, BrandingSettingsUpdate(**changes))
        click.echo(f"✓ Branding saved for {branding.company_name}")
        click.echo(f"  Colors: {branding.primary_color} / {branding.secondary_color}")
        click.echo(f"  Font: {branding.font_family}")
    except RfpDeskError as e:
        db.rollback()
        click.echo(f"❌ Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        db.close()


if __name__ == "__main__":
    cli()
