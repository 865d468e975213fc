"""Agent service registration data models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal


class AgentServiceCheck(BaseModel):
    """TTL health check attached to a service registration.

    Attributes:
        ttl: Time-to-live the service must refresh within, e.g. ``"15s"``
        deregister_critical_service_after: Grace period before a critical
            service is removed, e.g. ``"1m"``
    """

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    ttl: str = Field(..., alias="TTL", description="Check TTL")
    deregister_critical_service_after: str = Field(
        ..., description="Deregister critical service after this duration"
    )


class AgentService(BaseModel):
    """Service registration payload for the local agent.

    Attributes:
        id: Unique ID of the service instance
        name: Logical service name
        address: Address to advertise
        port: Port to advertise
        tags: Tags used for catalog filtering
        meta: Optional key/value metadata
        check: TTL check registered with the service
    """

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "ID": "web-01",
                "Name": "web",
                "Address": "10.0.0.12",
                "Port": 8080,
                "Tags": ["primary"],
                "Meta": {"version": "1.4.2"},
                "Check": {"TTL": "15s", "DeregisterCriticalServiceAfter": "1m"},
            }
        },
    )

    id: str = Field(..., alias="ID", description="Service instance ID")
    name: str = Field(..., description="Service name")
    address: str = Field(default="", description="Advertised address")
    port: int = Field(default=0, ge=0, le=65535, description="Advertised port")
    tags: list[str] = Field(default_factory=list, description="Service tags")
    meta: dict[str, str] | None = Field(default=None, description="Service metadata")
    check: AgentServiceCheck = Field(..., description="TTL health check")

    @field_validator("id", "name")
    @classmethod
    def validate_non_empty(cls, v: str) -> str:
        """Validate that service ID and name are not empty."""
        if not v or not v.strip():
            raise ValueError("Value must not be empty")
        return v.strip()

    def to_json_bytes(self) -> bytes:
        """Serialize with wire aliases, omitting unset optional fields."""
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
