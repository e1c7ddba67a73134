"""Offset pagination shared by the room list and message history.

Internally pages are one-based. The socket clients use zero-based pages, so
incoming page numbers are shifted up by one and the ``currentPage`` sent
back is shifted down by one. Both directions go through this module.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


@dataclass(slots=True)
class PageRequest:
    """One-based page cursor with a clamped limit."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(slots=True)
class PageResult(Generic[T]):
    items: list[T]
    total_items: int
    page: PageRequest

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.page.limit) if self.total_items else 0


class PaginationMeta(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_items: int
    item_count: int
    items_per_page: int
    total_pages: int
    current_page: int


class ClientPage(BaseModel):
    """Page selector as sent by socket clients (zero-based)."""

    page: int = Field(default=0, ge=0)
    limit: int = Field(default=10, ge=1)


def clamp_limit(limit: int, max_limit: int = 100) -> int:
    return max(1, min(limit, max_limit))


def first_page(limit: int = 10) -> PageRequest:
    return PageRequest(page=1, limit=limit)


def from_client(page: ClientPage, max_limit: int = 100) -> PageRequest:
    """Translate a zero-based client page into the internal one-based cursor."""

    return PageRequest(page=page.page + 1, limit=clamp_limit(page.limit, max_limit))


def to_client_meta(result: PageResult) -> PaginationMeta:
    """Build response metadata with ``currentPage`` back in client numbering."""

    return PaginationMeta(
        total_items=result.total_items,
        item_count=len(result.items),
        items_per_page=result.page.limit,
        total_pages=result.total_pages,
        current_page=result.page.page - 1,
    )


def page_payload(result: PageResult, items: Sequence[BaseModel]) -> dict:
    """Wire shape for ``rooms`` and ``messages`` events."""

    return {
        "items": [item.model_dump(mode="json", by_alias=True) for item in items],
        "meta": to_client_meta(result).model_dump(mode="json", by_alias=True),
    }
