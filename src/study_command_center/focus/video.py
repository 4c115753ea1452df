"""Video link parsing."""

import re

# watch, watch?...&v=, youtu.be, shorts, live, embed, v/ on www./m. hosts
_VIDEO_URL = re.compile(
    r"^(?:https?://)?(?:www\.|m\.)?"
    r"(?:youtu\.be/|youtube\.com/(?:embed/|v/|watch\?v=|watch\?.+&v=|shorts/|live/))"
    r"([\w-]{11})(?:[?&].*)?$",
    re.ASCII,
)


def extract_video_id(url: str | None) -> str | None:
    """Return the 11-character video id of a pasted link, or None."""
    if not url:
        return None
    match = _VIDEO_URL.match(url.strip())
    return match.group(1) if match else None


def thumbnail_url(video_id: str | None) -> str | None:
    if not video_id:
        return None
    return f"https://img.youtube.com/vi/{video_id}/mqdefault.jpg"
