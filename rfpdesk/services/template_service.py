"""Template service for reusable response content blocks."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from rfpdesk.core.clock import Clock, system_clock
from rfpdesk.core.errors import NotFoundError, ValidationError
from rfpdesk.db.models import Template
from rfpdesk.schemas.template import TemplateCreate


def list_templates(db: Session, category: str | None = None) -> list[Template]:
    """List templates, optionally filtered by category, ordered by name."""
    query = select(Template)
    if category:
        query = query.where(Template.category == category)
    return list(db.execute(query.order_by(Template.name, Template.id)).scalars().all())


def get_template(db: Session, template_id: int) -> Template | None:
    return db.get(Template, template_id)


def require_template(db: Session, template_id: int) -> Template:
    template = get_template(db, template_id)
    if template is None:
        raise NotFoundError(f"Template {template_id} not found")
    return template


def create_template(
    db: Session,
    data: TemplateCreate,
    *,
    clock: Clock = system_clock,
) -> Template:
    """Create a new template."""
    if not data.name.strip():
        raise ValidationError("name is required")
    if not data.content.strip():
        raise ValidationError("content is required")

    template = Template(
        name=data.name.strip(),
        description=data.description.strip() if data.description else None,
        content=data.content,
        category=data.category.strip() or "general",
        created_at=clock.now(),
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template
