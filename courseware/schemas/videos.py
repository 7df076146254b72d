import uuid

from pydantic import BaseModel, Field


class VideoOut(BaseModel):
    id: str
    course_id: str | None = None
    title: str
    order: int
    is_trailer: bool
    source_url: str
    duration_seconds: int | None = None


class VideoCreateRequest(BaseModel):
    course_id: uuid.UUID | None = None
    title: str = Field(min_length=1, max_length=255)
    order: int = Field(default=0, ge=0)
    is_trailer: bool = False
    source_url: str = Field(min_length=1)
    duration_seconds: int | None = Field(default=None, ge=0)


class VideoUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    order: int | None = Field(default=None, ge=0)
    is_trailer: bool | None = None
    source_url: str | None = Field(default=None, min_length=1)
    duration_seconds: int | None = Field(default=None, ge=0)


class AttachVideoRequest(BaseModel):
    order: int | None = Field(default=None, ge=0)
    is_trailer: bool | None = None


class ReorderItem(BaseModel):
    video_id: uuid.UUID
    order: int = Field(ge=0)


class ReorderRequest(BaseModel):
    items: list[ReorderItem] = Field(min_length=1)


class ReorderResponse(BaseModel):
    course_id: str
    videos: list[VideoOut]
