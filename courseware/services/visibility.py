"""Decides what a viewer may see of a course.

``resolve_visibility`` is a pure function of the course flags, the viewer's
role (``None`` for a guest) and whether an enrollment exists. Callers look up
the enrollment themselves; nothing here touches the database.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import TypeVar

from courseware.core.roles import Role, is_admin_tier


class Visibility(str, Enum):
    FULL = "full"
    TRAILER_ONLY = "trailer_only"
    DENIED = "denied"


def resolve_visibility(
    *,
    is_published: bool,
    is_public: bool,
    viewer_role: Role | str | None,
    is_enrolled: bool,
    trailer_preview: bool = False,
) -> Visibility:
    """Evaluate the access table in order; first match wins.

    ``trailer_preview`` marks the read paths on which guests may preview the
    trailer of a private course.
    """
    is_admin = is_admin_tier(viewer_role)
    is_guest = viewer_role is None

    if not is_published:
        return Visibility.FULL if is_admin else Visibility.DENIED
    if is_admin:
        return Visibility.FULL
    if is_public:
        return Visibility.FULL
    if is_enrolled:
        return Visibility.FULL
    if is_guest and trailer_preview:
        return Visibility.TRAILER_ONLY
    return Visibility.DENIED


def video_visibility(visibility: Visibility, *, is_guest: bool) -> Visibility:
    """Narrow a course-level decision for video listings.

    Guests never receive a full video list, public courses included.
    """
    if is_guest and visibility is Visibility.FULL:
        return Visibility.TRAILER_ONLY
    return visibility


V = TypeVar("V")


def filter_videos(videos: Iterable[V], visibility: Visibility) -> list[V]:
    """Order videos and drop what the visibility level hides.

    Every video flagged as a trailer is kept for TRAILER_ONLY; the model does
    not limit a course to a single trailer.
    """
    if visibility is Visibility.DENIED:
        raise ValueError("cannot list videos for a denied viewer")
    ordered = sorted(videos, key=lambda video: video.order)
    if visibility is Visibility.TRAILER_ONLY:
        return [video for video in ordered if video.is_trailer]
    return ordered
