"""Helpers for cover images and video links."""

from __future__ import annotations

import re
from typing import Optional

from .models import Video

__all__ = [
    "complete_image_url",
    "extract_youtube_id",
    "format_duration",
    "is_youtube_video",
    "video_embed_url",
    "youtube_thumbnail_url",
]


_YOUTUBE_ID_PATTERN = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")


def complete_image_url(image_url: Optional[str], base_url: str) -> str:
    """Return an absolute URL for *image_url*, relative paths resolved on *base_url*."""

    if not image_url:
        return ""
    if image_url.startswith("http"):
        return image_url
    return f"{base_url.rstrip('/')}/{image_url.lstrip('/')}"


def extract_youtube_id(url: Optional[str]) -> Optional[str]:
    """Return the 11 character video id from a YouTube URL, if there is one."""

    if not url:
        return None
    match = _YOUTUBE_ID_PATTERN.match(url)
    if match and len(match.group(2)) == 11:
        return match.group(2)
    return None


def is_youtube_video(video: Video) -> bool:
    return (
        video.video_type == "youtube"
        or "youtube.com" in video.url
        or "youtu.be" in video.url
        or bool(video.youtube_video_id)
    )


def _youtube_id(video: Video) -> Optional[str]:
    return video.youtube_video_id or extract_youtube_id(video.url)


def youtube_thumbnail_url(video: Video) -> Optional[str]:
    """Prefer the backend thumbnail, else derive one for YouTube videos."""

    if video.thumbnail_url:
        return video.thumbnail_url
    if is_youtube_video(video):
        video_id = _youtube_id(video)
        if video_id:
            return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"
    return None


def video_embed_url(video: Video, *, autoplay: bool = True) -> str:
    """Prefer the backend embed URL, else a YouTube embed, else the raw URL."""

    if video.embed_url:
        return video.embed_url
    if is_youtube_video(video):
        video_id = _youtube_id(video)
        if video_id:
            suffix = "?autoplay=1" if autoplay else ""
            return f"https://www.youtube.com/embed/{video_id}{suffix}"
    return video.url


def format_duration(seconds: Optional[int]) -> str:
    """Format *seconds* as ``m:ss``; empty for unknown or zero durations."""

    if not seconds or seconds <= 0:
        return ""
    minutes, remainder = divmod(int(seconds), 60)
    return f"{minutes}:{remainder:02d}"
