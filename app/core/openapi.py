"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- Tags metadata
- Rate limit responses (429/503) and X-RateLimit-* headers on every
  operation guarded by the limiter

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_RATE_LIMIT_HEADERS = {
    "X-RateLimit-Limit": {
        "description": "Maximum requests per sliding window.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Remaining": {
        "description": "Requests left in the current window.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Reset": {
        "description": "UNIX time (seconds) when the current window ends.",
        "schema": {"type": "integer"},
    },
}

_STORE_UNAVAILABLE_RESPONSE = {
    "description": "Counter store unavailable; the request was neither admitted nor throttled.",
}


def _is_rate_limited(method_obj: Dict[str, Any]) -> bool:
    return "429" in method_obj.get("responses", {})


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to document rate limiting.

    - Adds tags metadata if not present
    - Adds X-RateLimit-* headers to the 200 response and a 503 response to
      every operation that already declares a 429 response
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Todos",
                "description": "Rate-limited todo lookup.",
            },
            {
                "name": "Health",
                "description": "Liveness checks (not rate limited).",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for methods in schema.get("paths", {}).values():
            for method_obj in methods.values():
                if not isinstance(method_obj, dict) or not _is_rate_limited(method_obj):
                    continue
                responses = method_obj["responses"]
                ok = responses.get("200")
                if isinstance(ok, dict):
                    ok.setdefault("headers", {}).update(_RATE_LIMIT_HEADERS)
                responses.setdefault("503", dict(_STORE_UNAVAILABLE_RESPONSE))

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
