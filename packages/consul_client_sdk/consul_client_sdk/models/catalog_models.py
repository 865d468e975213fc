"""Catalog data models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal


class CatalogService(BaseModel):
    """A service instance as listed by the catalog.

    Attributes:
        service_id: Unique ID of the service instance
        service_name: Logical service name
        service_address: Address the instance advertises
        service_port: Port the instance listens on
        service_tags: Tags attached at registration
        service_meta: Optional key/value metadata
        create_index: Index at which the entry was created
        modify_index: Index at which the entry was last modified
    """

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    service_id: str = Field(..., alias="ServiceID", description="Service instance ID")
    service_name: str = Field(..., description="Service name")
    service_address: str = Field(default="", description="Advertised address")
    service_port: int = Field(default=0, description="Advertised port")
    service_tags: list[str] = Field(default_factory=list, description="Service tags")
    service_meta: dict[str, str] | None = Field(default=None, description="Service metadata")
    create_index: int = Field(default=0, ge=0, description="Creation index")
    modify_index: int = Field(default=0, ge=0, description="Last modification index")

    @field_validator("service_tags", mode="before")
    @classmethod
    def validate_service_tags(cls, v: Any) -> Any:
        """Treat a null tag list as empty."""
        return [] if v is None else v
