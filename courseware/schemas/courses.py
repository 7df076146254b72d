from pydantic import BaseModel, Field

from courseware.schemas.videos import VideoOut


class CourseListItem(BaseModel):
    id: str
    title: str
    summary: str
    image_path: str
    is_public: bool
    access: str


class CourseListResponse(BaseModel):
    courses: list[CourseListItem]
    total: int


class CourseDetailResponse(BaseModel):
    id: str
    title: str
    summary: str
    description_markdown: str
    image_path: str
    is_public: bool
    access: str
    videos: list[VideoOut]


class CourseAccessResponse(BaseModel):
    course_id: str
    has_access: bool


class AdminCourseCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    summary: str = ""
    description_markdown: str = ""
    image_path: str = ""
    is_published: bool = False
    is_public: bool = False


class AdminCourseUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    summary: str | None = None
    description_markdown: str | None = None
    image_path: str | None = None
    is_published: bool | None = None
    is_public: bool | None = None


class AdminCourseResponse(BaseModel):
    id: str
    title: str
    summary: str
    description_markdown: str
    image_path: str
    is_published: bool
    is_public: bool
    created_at: str
    videos: list[VideoOut] = Field(default_factory=list)


class AdminCourseListResponse(BaseModel):
    courses: list[AdminCourseResponse]
    total: int
