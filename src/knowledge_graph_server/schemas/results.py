"""Result envelope returned by every tool call."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field


class OperationResult(BaseModel):
    """Generic success/failure envelope for a tool call.

    A successful call carries ``data``; a failed one carries ``error`` and,
    when a user locale is configured, ``errorDetailInUserLocale``.
    """

    success: bool = Field(description="Whether the operation succeeded")
    data: Any = Field(default=None, description="Operation payload on success")
    error: str | None = Field(default=None, description="Error message on failure")
    error_detail_in_user_locale: str | None = Field(
        default=None,
        alias="errorDetailInUserLocale",
        description="Error message in the configured user locale",
    )
    error_kind: str | None = Field(
        default=None,
        alias="errorKind",
        description="Machine-readable error category",
    )

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {"success": True, "data": [{"name": "Alice", "entityType": "person"}]},
                {
                    "success": False,
                    "error": 'Entities not found: ["Bob"]',
                    "errorDetailInUserLocale": '다음 엔티티를 찾을 수 없습니다: ["Bob"]',
                    "errorKind": "entities_not_found",
                },
            ]
        },
    }

    @classmethod
    def ok(cls, data: Any = None) -> OperationResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        error: str,
        localized: str | None = None,
        kind: str | None = None,
    ) -> OperationResult:
        return cls(
            success=False,
            error=error,
            error_detail_in_user_locale=localized,
            error_kind=kind,
        )

    def to_wire(self) -> dict[str, Any]:
        """Dump the envelope with wire field names, omitting unset failure fields."""
        if self.success:
            return {"success": True, "data": self.data}
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"data"})

    def render_text(self) -> str:
        """Render the result as the text block handed back to tool clients.

        Success renders ``data`` as indented JSON; failure renders the error
        message followed by the localized detail on its own line.
        """
        if self.success:
            return json.dumps(self.data, indent=2, ensure_ascii=False)
        if self.error_detail_in_user_locale:
            return f"{self.error}\n{self.error_detail_in_user_locale}"
        return self.error or "Unknown error"


__all__ = ["OperationResult"]
