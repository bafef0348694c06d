"""Pydantic schemas for podcast catalog requests and responses.

Upstream podcast objects are passed through as-is: only their shape is
checked (each item and its ``images`` must be objects). Scalar values keep
whatever JSON type upstream sent, and unknown fields are preserved so the
gateway never drops data it does not understand. Wire names are camelCase
on both sides.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PodcastImages(BaseModel):
    """Artwork URLs in the sizes published by the catalog."""

    model_config = ConfigDict(extra="allow")

    default: Any = None
    featured: Any = None
    thumbnail: Any = None
    wide: Any = None


class Podcast(CamelModel):
    """A single podcast as returned by the upstream catalog."""

    model_config = ConfigDict(extra="allow")

    id: Any = None
    title: Any = None
    description: Any = None
    category_name: Any = None
    publisher_name: Any = None
    images: PodcastImages | None = None
    is_exclusive: Any = None
    has_free_episodes: Any = None
    media_type: Any = None


class PageRequest(BaseModel):
    """Normalized pagination and search parameters.

    ``search`` is trimmed and lower-cased; a blank value means "no filter"
    and is stored as ``None``.
    """

    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    search: str | None = None

    @field_validator("search")
    @classmethod
    def _normalize_search(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().lower()
        return value or None


def compute_total_pages(total_items: int, limit: int) -> int:
    """Number of pages needed to show ``total_items`` at ``limit`` per page.

    >>> compute_total_pages(12, 5)
    3
    >>> compute_total_pages(0, 10)
    0
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if total_items < 0:
        raise ValueError("total_items must be >= 0")
    return (total_items + limit - 1) // limit


class PodcastPage(CamelModel):
    """One page of podcasts together with catalog-wide totals."""

    podcasts: list[Podcast] = Field(default_factory=list)
    total_items: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    current_page: int = Field(..., ge=1)


class PodcastListResponse(CamelModel):
    """REST response body for ``GET /api/podcasts``."""

    podcasts: list[Podcast] = Field(
        default_factory=list,
        description="Podcasts on the requested page, in upstream order.",
    )
    current_page: int = Field(..., description="Page number that was requested.")
    total_pages: int = Field(
        ...,
        description="ceil(total matching podcasts / limit); 0 when nothing matches.",
    )

    @classmethod
    def from_page(cls, page: PodcastPage) -> "PodcastListResponse":
        return cls(
            podcasts=page.podcasts,
            current_page=page.current_page,
            total_pages=page.total_pages,
        )
