"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with tags metadata (Podcasts, GraphQL,
Health) and a 429 response on every operation.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Podcasts",
        "description": "Paginated, searchable podcast listings (REST).",
    },
    {
        "name": "GraphQL",
        "description": (
            "Single `podcasts(page, limit, search)` query returning podcasts, "
            "totalItems, totalPages and currentPage."
        ),
    },
    {
        "name": "Health",
        "description": "Liveness check.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags metadata.

    - Adds tags metadata if not present
    - Documents the 429 response shared by every route
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for methods in schema.get("paths", {}).values():
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj.setdefault("responses", {}).setdefault(
                        "429",
                        {"description": "Rate limit exceeded; see Retry-After."},
                    )

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
