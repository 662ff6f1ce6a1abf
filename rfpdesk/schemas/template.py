"""Pydantic schemas for content templates."""

from pydantic import BaseModel, Field


class TemplateCreate(BaseModel):
    name: str = Field(max_length=200)
    description: str | None = None
    content: str
    category: str = Field(default="general", max_length=100)
