from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Inkthread API",
            version="0.1.0",
            summary="Threaded discussions for novels, chapters and paragraphs",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": "session",
                "description": "Signed session cookie issued by the account system",
            },
        }

        # Reads are public except the moderation listing
        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if method.upper() != "GET" or path.startswith("/api/v1/admin"):
                    operation["security"] = [{"SessionCookie": []}]

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Authentication required", "type": "authentication_error"},
                {"message": "Comment not found", "type": "not_found"},
                {"message": "The edit window for this comment has closed", "type": "access_denied"},
            ]
        }
    }


class RateLimitedResponse(ErrorResponse):
    """Error response for posting inside the cooldown."""

    retry_after: int = Field(..., description="Seconds to wait before posting again")
