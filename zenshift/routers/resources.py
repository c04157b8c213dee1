"""
Content routers (products, journals, blog posts, reviews).

All four share the same list/get/create/update/delete shape, so routers are
built from the ResourceDefinition of each resource. This module keeps real
annotations (no postponed evaluation) because the request body type is only
known when the router is built.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic.alias_generators import to_camel

from zenshift.services.resource_service import (
    BLOG_POSTS,
    JOURNALS,
    PRODUCTS,
    REVIEWS,
    ResourceDefinition,
    ResourceService,
)
from zenshift.services.session_service import require_user


def build_router(
    definition: ResourceDefinition,
    *,
    protect_writes: bool = False,
    allow_update: bool = True,
) -> APIRouter:
    router = APIRouter(prefix=f"/{definition.plural}", tags=[definition.plural])
    schema = definition.schema
    write_deps = [Depends(require_user)] if protect_writes else []
    noun = definition.label

    def _service(request: Request) -> ResourceService:
        return request.app.state.resources[definition.plural]

    @router.get("")
    def list_resources(
        request: Request,
        page: int = 1,
        limit: int = 20,
        sort_by: Optional[str] = Query(None, alias="sortBy"),
    ):
        filters = {name: request.query_params.get(to_camel(name)) for name in definition.filters}
        return _service(request).list(page=page, limit=limit, filters=filters, sort_by=sort_by)

    @router.get("/{resource_id}")
    def get_resource(resource_id: str, request: Request):
        return _service(request).get(resource_id)

    @router.post("", status_code=201, dependencies=write_deps)
    def create_resource(payload: schema, request: Request):  # type: ignore[valid-type]
        return _service(request).create(payload)

    if allow_update:

        @router.put("/{resource_id}", dependencies=write_deps)
        def update_resource(resource_id: str, payload: schema, request: Request):  # type: ignore[valid-type]
            return _service(request).update(resource_id, payload)

    @router.delete("/{resource_id}", dependencies=write_deps)
    def delete_resource(resource_id: str, request: Request):
        _service(request).delete(resource_id)
        return {"message": f"{noun} deleted successfully"}

    return router


products_router = build_router(PRODUCTS, protect_writes=True)
journals_router = build_router(JOURNALS)
blogposts_router = build_router(BLOG_POSTS)
reviews_router = build_router(REVIEWS, allow_update=False)


@reviews_router.get("/product/{product_id}")
def list_product_reviews(product_id: str, request: Request, page: int = 1, limit: int = 20):
    return request.app.state.resources["reviews"].list_for_product(product_id, page=page, limit=limit)
