from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from flask import request

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    page: int
    limit: int
    total: int

    def meta(self) -> dict:
        return {
            "current_page": self.page,
            "total_pages": math.ceil(self.total / self.limit) if self.limit else 0,
            "total_items": self.total,
            "items_per_page": self.limit,
        }


def page_request(default_size: int = DEFAULT_PAGE_SIZE) -> PageRequest:
    """Read ``?page=&limit=`` from the current Flask request, clamped."""
    try:
        page = max(int(request.args.get("page", 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(request.args.get("limit", default_size))
        limit = max(1, min(limit, MAX_PAGE_SIZE))
    except (TypeError, ValueError):
        limit = default_size
    return PageRequest(page=page, limit=limit)
