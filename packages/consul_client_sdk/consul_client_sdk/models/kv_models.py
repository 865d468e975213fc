"""Key/value store data models."""

from __future__ import annotations

import base64
import binascii

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal


class KVPair(BaseModel):
    """A single entry of the key/value store.

    ``value`` is kept as the base64 text the server sends; use
    ``decoded_value`` for the stored bytes.
    """

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    lock_index: int = Field(default=0, ge=0, description="Number of times the key was locked")
    key: str = Field(..., description="Full key path")
    flags: int = Field(default=0, ge=0, description="Opaque client flags")
    value: str | None = Field(default=None, description="Base64-encoded value")
    create_index: int = Field(default=0, ge=0, description="Creation index")
    modify_index: int = Field(default=0, ge=0, description="Last modification index")
    session: str | None = Field(default=None, description="Session holding the lock")

    @property
    def decoded_value(self) -> bytes:
        """Stored value as raw bytes; empty when the key holds no value."""
        if not self.value:
            return b""
        try:
            return base64.b64decode(self.value, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Value of key '{self.key}' is not valid base64") from e
