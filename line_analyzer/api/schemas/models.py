"""Pydantic models for the HTTP trigger API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from line_analyzer.core.types import Ack, ObjectReference


class StorageEventSchema(BaseModel):
    """Cloud Storage object notification payload (extra fields ignored)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    bucket: str = Field(min_length=1)
    name: str = Field(min_length=1)
    content_type: str | None = Field(default=None, alias="contentType")

    def to_reference(self) -> ObjectReference:
        return ObjectReference(bucket=self.bucket, name=self.name, content_type=self.content_type)


class AckSchema(BaseModel):
    """Successful invocation payload."""

    observation_id: str
    shop_id: str
    waiting_people_num: int
    faces_written: int

    @classmethod
    def from_ack(cls, ack: Ack) -> AckSchema:
        return cls(
            observation_id=ack.observation_id,
            shop_id=ack.shop_id,
            waiting_people_num=ack.waiting_people_num,
            faces_written=ack.faces_written,
        )


class ErrorSchema(BaseModel):
    """Failed invocation payload."""

    stage: str
    error: str
    retryable: bool
