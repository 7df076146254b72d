import uuid

from pydantic import BaseModel


class EnrollRequest(BaseModel):
    user_id: uuid.UUID


class EnrollmentOut(BaseModel):
    id: str
    user_id: str
    course_id: str
    enrolled_by: str | None = None
    enrolled_at: str


class CourseEnrollmentItem(BaseModel):
    user_id: str
    username: str
    email: str
    enrolled_by: str | None = None
    enrolled_at: str


class CourseEnrollmentsResponse(BaseModel):
    course_id: str
    enrollments: list[CourseEnrollmentItem]
    total: int


class UserCourseItem(BaseModel):
    id: str
    title: str
    summary: str
    image_path: str
    is_public: bool
    enrolled_at: str


class UserCoursesResponse(BaseModel):
    user_id: str
    courses: list[UserCourseItem]
    total: int
