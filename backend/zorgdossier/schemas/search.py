"""Search Schemas — per-client dossier search request."""

from pydantic import BaseModel, Field


class SearchFiltersIn(BaseModel):
    date_from: str | None = None
    date_to: str | None = None
    section: str | None = None
    author: str | None = None


class SearchRequest(BaseModel):
    client_id: str = Field(min_length=1)
    query: str = Field(min_length=1)
    k: int = Field(10, gt=0)
    filters: SearchFiltersIn | None = None
