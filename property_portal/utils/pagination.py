"""
Pagination result containers returned by listing services.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Generic, List, TypeVar
import math

T = TypeVar("T")


@dataclass
class Pagination:
    current_page: int
    per_page: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> "Pagination":
        return cls(
            current_page=page,
            per_page=per_page,
            total=total,
            total_pages=math.ceil(total / per_page) if per_page else 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PagedResult(Generic[T]):
    """A page of entities plus its pagination metadata."""

    items: List[T] = field(default_factory=list)
    pagination: Pagination = field(default_factory=lambda: Pagination(1, 0, 0, 0))
