"""Pagination helpers for list endpoints."""


from fastapi import Query
from pydantic import BaseModel
from pydantic.alias_generators import to_snake


class PaginationParams:
    """FastAPI dependency for `?page=1&limit=20&sort=createdAt&order=desc`.

    ``sort`` is accepted in either camelCase (as the front end sends it) or
    snake_case and resolved to the ORM column name via :attr:`sort_column`.
    """

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-based)"),
        limit: int = Query(default=20, ge=1, le=200, description="Items per page"),
        sort: str = Query(default="created_at", description="Sort field"),
        order: str = Query(default="desc", pattern="^(asc|desc)$", description="Sort order"),
    ):
        self.page = page
        self.limit = limit
        self.sort = sort
        self.order = order

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def sort_column(self) -> str:
        return to_snake(self.sort)


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    pages: int
