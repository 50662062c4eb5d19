"""Trigger event payloads."""

from pydantic import BaseModel, ConfigDict, Field


class ExportCreated(BaseModel):
    """Published once an export record is committed; carries only its id.

    Serialized as ``{"exportId": <int>}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    export_id: int = Field(alias="exportId")

    def to_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "ExportCreated":
        return cls.model_validate_json(data)
