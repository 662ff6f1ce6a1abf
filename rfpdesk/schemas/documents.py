"""Pydantic schemas for RFP and company documents."""

from pydantic import BaseModel


class RfpDocumentCreate(BaseModel):
    """Upload metadata for a new RFP document."""

    title: str
    client_name: str
    file_name: str
    file_size: int
    file_type: str
    content: str | None = None


class CompanyDocumentCreate(BaseModel):
    """Upload metadata for company reference material."""

    title: str
    file_name: str
    file_size: int
    file_type: str
    category: str
    content: str | None = None
