"""OpenAPI customization.

Adds the ``X-API-Key`` security scheme, tag descriptions and the shared error
envelope to the generated schema, and exempts the health check from auth.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Limits", "description": "Per-identity monthly limits."},
    {"name": "Usage", "description": "Read usage buckets."},
    {"name": "Schedules", "description": "Spend or release tokens as all-or-nothing batches."},
    {"name": "Health", "description": "Liveness checks."},
]

ERROR_SCHEMA = {
    "type": "object",
    "properties": {
        "error": {
            "type": "object",
            "properties": {
                "code": {"type": "string"},
                "message": {"type": "string"},
                "request_id": {"type": "string", "nullable": True},
                "details": {"type": "object"},
            },
            "required": ["code", "message"],
        }
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation with security and error metadata."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("securitySchemes", {})["ApiKeyAuth"] = {
            "type": "apiKey",
            "in": "header",
            "name": "X-API-Key",
            "description": "Admin keys are required to set limits and to force schedules.",
        }
        components.setdefault("schemas", {})["ErrorResponse"] = ERROR_SCHEMA
        schema["security"] = [{"ApiKeyAuth": []}]

        existing = {tag.get("name") for tag in schema.setdefault("tags", [])}
        schema["tags"].extend(tag for tag in TAGS_METADATA if tag["name"] not in existing)

        error_ref = {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/ErrorResponse"}}}}
        for path, methods in schema.get("paths", {}).items():
            for operation in methods.values():
                if not isinstance(operation, dict):
                    continue
                if path.endswith("/health"):
                    operation["security"] = []
                    continue
                responses = operation.setdefault("responses", {})
                responses.setdefault("403", {"description": "Missing or invalid API key", **error_ref})
                if "Schedules" in operation.get("tags", []):
                    responses.setdefault("409", {"description": "Batch rejected against stored usage", **error_ref})
                responses.setdefault("503", {"description": "Quota store unavailable", **error_ref})

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
