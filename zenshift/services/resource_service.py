"""
Generic CRUD for site content (products, journals, blog posts, reviews).

Each resource is described once by a ``ResourceDefinition``: the model, the
request schema, which columns can be filtered through the query string and
which ``sortBy`` values are accepted. ``ResourceService`` implements the
list/get/create/update/delete contract on top of that description.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from zenshift.core.errors import NotFound
from zenshift.db.models import BlogPost, Journal, Product, Review
from zenshift.repositories.sql_repository import SQLRepository
from zenshift.schemas import BlogPostIn, JournalIn, ProductIn, ReviewIn

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# sortBy value -> ((column, descending), ...)
SortSpec = tuple[tuple[str, bool], ...]

NEWEST: SortSpec = (("created_at", True),)
OLDEST: SortSpec = (("created_at", False),)
ALPHABETICAL: SortSpec = (("title", False),)


@dataclass(frozen=True)
class ResourceDefinition:
    label: str
    plural: str
    model: Any
    schema: type[BaseModel]
    filters: tuple[str, ...] = ()
    sorts: dict[str, SortSpec] = field(default_factory=lambda: {"newest": NEWEST})
    default_sort: SortSpec = NEWEST
    # Wire names that differ from to_camel(column).
    renames: dict[str, str] = field(default_factory=dict)


PRODUCTS = ResourceDefinition(
    label="Product",
    plural="products",
    model=Product,
    schema=ProductIn,
    filters=("type", "category", "tools_type"),
    sorts={"alphabetical": ALPHABETICAL, "price": (("price", False),), "newest": NEWEST},
)

JOURNALS = ResourceDefinition(
    label="Journal",
    plural="journals",
    model=Journal,
    schema=JournalIn,
    filters=("vertical",),
    sorts={"alphabetical": ALPHABETICAL, "newest": NEWEST, "oldest": OLDEST},
)

BLOG_POSTS = ResourceDefinition(
    label="Blog post",
    plural="blogposts",
    model=BlogPost,
    schema=BlogPostIn,
    filters=("vertical",),
    sorts={"alphabetical": ALPHABETICAL, "newest": NEWEST, "oldest": OLDEST},
)

REVIEWS = ResourceDefinition(
    label="Review",
    plural="reviews",
    model=Review,
    schema=ReviewIn,
    renames={"product_id": "product"},
)


def _json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class ResourceService:
    def __init__(self, definition: ResourceDefinition, repository: SQLRepository | None = None) -> None:
        self.definition = definition
        self.repository = repository or SQLRepository()

    # -------------------------------------- serialization --------------------------------------
    def serialize(self, entity) -> dict:
        renames = self.definition.renames
        data = {}
        for column in entity.__table__.columns:
            key = renames.get(column.key) or to_camel(column.key)
            data[key] = _json_value(getattr(entity, column.key))
        return data

    def _values(self, payload: BaseModel) -> dict:
        return payload.model_dump(exclude_unset=True, exclude_none=True)

    def _order_by(self, sort_by: Optional[str]) -> list:
        spec = self.definition.sorts.get((sort_by or "").strip(), self.definition.default_sort)
        model = self.definition.model
        return [getattr(model, name).desc() if desc else getattr(model, name).asc() for name, desc in spec]

    def _not_found(self) -> NotFound:
        return NotFound(f"{self.definition.label} not found")

    # -------------------------------------- operations --------------------------------------
    def list(
        self,
        *,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        filters: Optional[dict[str, Optional[str]]] = None,
        sort_by: Optional[str] = None,
    ) -> dict:
        page = max(1, page or 1)
        limit = min(max(1, limit or DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)
        criteria = {
            name: value
            for name, value in (filters or {}).items()
            if name in self.definition.filters and value not in (None, "")
        }
        model = self.definition.model
        total = self.repository.count_resources(model, criteria)
        items = self.repository.list_resources(
            model, criteria, self._order_by(sort_by), offset=(page - 1) * limit, limit=limit
        )
        return {
            self.definition.plural: [self.serialize(item) for item in items],
            "total": total,
            "page": page,
            "totalPages": math.ceil(total / limit),
        }

    def get(self, resource_id: str) -> dict:
        entity = self.repository.get_resource(self.definition.model, resource_id)
        if entity is None:
            raise self._not_found()
        return self.serialize(entity)

    def create(self, payload: BaseModel) -> dict:
        entity = self.repository.create_resource(self.definition.model, self._values(payload))
        return self.serialize(entity)

    def update(self, resource_id: str, payload: BaseModel) -> dict:
        entity = self.repository.update_resource(self.definition.model, resource_id, self._values(payload))
        if entity is None:
            raise self._not_found()
        return self.serialize(entity)

    def delete(self, resource_id: str) -> None:
        if not self.repository.delete_resource(self.definition.model, resource_id):
            raise self._not_found()


class ReviewService(ResourceService):
    """Reviews are tagged with the product they belong to."""

    def __init__(self, repository: SQLRepository | None = None) -> None:
        super().__init__(REVIEWS, repository)

    def create(self, payload: BaseModel) -> dict:
        values = self._values(payload)
        if self.repository.get_resource(Product, values.get("product_id")) is None:
            raise NotFound("Product not found")
        return self.serialize(self.repository.create_resource(Review, values))

    def list_for_product(self, product_id: str, *, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> dict:
        page = max(1, page or 1)
        limit = min(max(1, limit or DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)
        criteria = {"product_id": product_id}
        total = self.repository.count_resources(Review, criteria)
        items = self.repository.list_resources(
            Review, criteria, self._order_by(None), offset=(page - 1) * limit, limit=limit
        )
        return {
            "reviews": [self.serialize(item) for item in items],
            "total": total,
            "page": page,
            "totalPages": math.ceil(total / limit),
        }
