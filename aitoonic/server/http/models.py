"""Pydantic request and response models for the admin API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from ...content.models import Agent, Category, Tool


def _strip_optional(value: Any) -> Any:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class FeaturePayload(BaseModel):
    title: str
    description: str = ""


class PricingPlanPayload(BaseModel):
    plan: str
    price: str = ""
    features: list[str] = Field(default_factory=list)


class _ItemPayload(BaseModel):
    """Fields shared by every catalogue item."""

    id: str | None = Field(None, description="Existing item id; omit to create a new item.")
    name: str
    description: str
    seo_title: str | None = None
    seo_description: str | None = None
    image_url: str | None = None
    image_alt: str | None = None

    @field_validator("name", "description")
    @classmethod
    def _required_text(cls, value: str, info: ValidationInfo) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError(f"{str(info.field_name).capitalize()} is required")
        return stripped

    @field_validator("seo_title", "seo_description", "image_url", "image_alt", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        return _strip_optional(value)

    def to_values(self) -> dict[str, Any]:
        values = self.model_dump()
        if values.get("id") is None:
            values.pop("id", None)
        return values


class CategoryPayload(_ItemPayload):
    pass


class ToolPayload(_ItemPayload):
    url: str
    category_id: str
    favicon_url: str | None = None
    rating: float | None = Field(None, ge=0, le=5)
    how_to_use: str | None = None
    features: list[FeaturePayload] = Field(default_factory=list)
    use_cases: list[FeaturePayload] = Field(default_factory=list)
    pricing: list[PricingPlanPayload] = Field(default_factory=list)

    @field_validator("url")
    @classmethod
    def _url_required(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Tool URL is required")
        return stripped

    @field_validator("category_id")
    @classmethod
    def _category_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Category is required")
        return value.strip()

    @field_validator("how_to_use", "favicon_url", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _strip_optional(value)


class AgentPayload(_ItemPayload):
    capabilities: list[str] = Field(default_factory=list)
    agent_features: list[str] = Field(default_factory=list)
    api_endpoint: str | None = None
    pricing_type: str = "free"
    status: Literal["active", "inactive"] = "active"
    is_available_24_7: bool = False
    user_count: int = Field(0, ge=0)
    has_fast_response: bool = False
    is_secure: bool = False
    is_featured: bool = False
    is_verified: bool = False

    @field_validator("capabilities", "agent_features")
    @classmethod
    def _drop_blank(cls, values: list[str]) -> list[str]:
        return [value.strip() for value in values if value.strip()]


class StoredItemResponse(BaseModel):
    """Identity and timestamps of an item after an admin write."""

    kind: Literal["tools", "categories", "agents"]
    id: str
    name: str
    slug: str
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_item(
        cls, kind: Literal["tools", "categories", "agents"], item: Union[Tool, Category, Agent]
    ) -> "StoredItemResponse":
        return cls(
            kind=kind,
            id=item.id,
            name=item.name,
            slug=item.slug,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class MessageResponse(BaseModel):
    message: str


__all__ = [
    "AgentPayload",
    "CategoryPayload",
    "FeaturePayload",
    "MessageResponse",
    "PricingPlanPayload",
    "StoredItemResponse",
    "ToolPayload",
]
