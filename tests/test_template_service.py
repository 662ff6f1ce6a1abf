"""Tests for content templates."""

import pytest

from rfpdesk.core.errors import NotFoundError, ValidationError


def test_create_and_list_templates(db, make_template):
    from rfpdesk.services import template_service

    make_template(name="Methodology", category="methodology")
    make_template(name="Cover letter", category="cover-letter")

    names = [t.name for t in template_service.list_templates(db)]
    assert names == ["Cover letter", "Methodology"]

    methodology = template_service.list_templates(db, category="methodology")
    assert [t.name for t in methodology] == ["Methodology"]


def test_blank_category_falls_back_to_general(make_template):
    template = make_template(category="  ")
    assert template.category == "general"


@pytest.mark.parametrize("overrides", [{"name": " "}, {"content": ""}])
def test_create_template_validation(make_template, overrides):
    with pytest.raises(ValidationError):
        make_template(**overrides)


def test_require_template_not_found(db):
    from rfpdesk.services import template_service

    with pytest.raises(NotFoundError):
        template_service.require_template(db, 12)
