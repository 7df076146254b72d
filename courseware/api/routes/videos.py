import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from courseware.api.deps import AdminUser, OptionalUser
from courseware.db.session import get_db
from courseware.models import Video
from courseware.schemas.videos import AttachVideoRequest, VideoCreateRequest, VideoOut, VideoUpdateRequest
from courseware.services import video_order_service
from courseware.services.course_service import get_video_for_viewer

router = APIRouter(prefix="/v1/videos", tags=["videos"])


def video_out(video: Video) -> VideoOut:
    return VideoOut(
        id=str(video.id),
        course_id=str(video.course_id) if video.course_id else None,
        title=video.title,
        order=video.order,
        is_trailer=video.is_trailer,
        source_url=video.source_url,
        duration_seconds=video.duration_seconds,
    )


@router.post("", response_model=VideoOut, status_code=status.HTTP_201_CREATED)
def create_video(payload: VideoCreateRequest, _: AdminUser, db: Session = Depends(get_db)) -> VideoOut:
    return video_out(video_order_service.create_video(db, payload))


@router.get("/{video_id}", response_model=VideoOut)
def get_video(video_id: uuid.UUID, viewer: OptionalUser, db: Session = Depends(get_db)) -> VideoOut:
    return video_out(get_video_for_viewer(db, video_id, viewer))


@router.patch("/{video_id}", response_model=VideoOut)
def update_video(
    video_id: uuid.UUID, payload: VideoUpdateRequest, _: AdminUser, db: Session = Depends(get_db)
) -> VideoOut:
    return video_out(video_order_service.update_video(db, video_id, payload))


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_video(video_id: uuid.UUID, _: AdminUser, db: Session = Depends(get_db)) -> None:
    video_order_service.delete_video(db, video_id)


@router.post("/{video_id}/attach/{course_id}", response_model=VideoOut)
def attach_video(
    video_id: uuid.UUID,
    course_id: uuid.UUID,
    _: AdminUser,
    payload: AttachVideoRequest | None = None,
    db: Session = Depends(get_db),
) -> VideoOut:
    options = payload or AttachVideoRequest()
    video = video_order_service.attach(db, video_id, course_id, order=options.order, is_trailer=options.is_trailer)
    return video_out(video)


@router.post("/{video_id}/detach", response_model=VideoOut)
def detach_video(video_id: uuid.UUID, _: AdminUser, db: Session = Depends(get_db)) -> VideoOut:
    return video_out(video_order_service.detach(db, video_id))
