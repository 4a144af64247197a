"""
Shared schema building blocks.
"""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON while keeping snake_case attributes.

    Both spellings are accepted on input so internal callers can build
    models from database rows directly.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str


class PageMeta(CamelModel):
    """Pagination metadata returned by listing endpoints."""

    total: int
    per_page: int
    current_page: int
    last_page: int


T = TypeVar("T")


class Page(CamelModel, Generic[T]):
    message: str
    meta: PageMeta
    data: List[T]


def page_meta(total: int, page: int, per_page: int) -> PageMeta:
    """Build pagination metadata; ``last_page`` is at least 1."""
    last_page = max(1, (total + per_page - 1) // per_page)
    return PageMeta(total=total, per_page=per_page, current_page=page, last_page=last_page)
