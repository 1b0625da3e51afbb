from __future__ import annotations

import pytest

from asset_viewer.services.media import (
    complete_image_url,
    extract_youtube_id,
    format_duration,
    is_youtube_video,
    video_embed_url,
    youtube_thumbnail_url,
)
from asset_viewer.services.models import Video


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://youtu.be/dQw4w9WgXcQ?t=30", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/embed/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/watch?v=short", None),
        ("https://cdn.example/video.mp4", None),
        (None, None),
    ],
)
def test_extract_youtube_id(url, expected) -> None:
    assert extract_youtube_id(url) == expected


def test_youtube_video_links() -> None:
    video = Video(id="v1", title="Intro", url="https://youtu.be/dQw4w9WgXcQ")

    assert is_youtube_video(video)
    assert video_embed_url(video) == "https://www.youtube.com/embed/dQw4w9WgXcQ?autoplay=1"
    assert video_embed_url(video, autoplay=False) == "https://www.youtube.com/embed/dQw4w9WgXcQ"
    assert youtube_thumbnail_url(video) == "https://img.youtube.com/vi/dQw4w9WgXcQ/maxresdefault.jpg"


def test_backend_links_take_precedence() -> None:
    video = Video(
        id="v1",
        title="Intro",
        url="https://youtu.be/dQw4w9WgXcQ",
        embed_url="https://player.example/1",
        thumbnail_url="https://img.example/1.jpg",
    )

    assert video_embed_url(video) == "https://player.example/1"
    assert youtube_thumbnail_url(video) == "https://img.example/1.jpg"


def test_hosted_video_keeps_its_url() -> None:
    video = Video(id="v2", title="Lab", url="https://cdn.example/lab.mp4", video_type="upload")

    assert not is_youtube_video(video)
    assert video_embed_url(video) == "https://cdn.example/lab.mp4"
    assert youtube_thumbnail_url(video) is None


@pytest.mark.parametrize(
    ("image", "expected"),
    [
        ("https://cdn.example/cover.png", "https://cdn.example/cover.png"),
        ("/uploads/cover.png", "http://content.test/uploads/cover.png"),
        ("uploads/cover.png", "http://content.test/uploads/cover.png"),
        (None, ""),
        ("", ""),
    ],
)
def test_complete_image_url(image, expected) -> None:
    assert complete_image_url(image, "http://content.test/") == expected


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(125, "2:05"), (59, "0:59"), (3600, "60:00"), (0, ""), (None, "")],
)
def test_format_duration(seconds, expected) -> None:
    assert format_duration(seconds) == expected
