from typing import List, Optional
from urllib.parse import parse_qs, urlparse

import bcrypt


def hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def get_youtube_embed_url(url: str) -> Optional[str]:
    """Convert a youtube.com / youtu.be link to its embeddable form, or None."""
    try:
        parsed = urlparse(url.strip())
    except (AttributeError, ValueError):
        return None

    if parsed.scheme not in ("http", "https"):
        return None

    hostname = (parsed.hostname or "").replace("www.", "")
    video_id = ""

    if hostname == "youtu.be":
        video_id = parsed.path[1:]
    elif "youtube.com" in hostname:
        if parsed.path == "/watch":
            video_id = parse_qs(parsed.query).get("v", [""])[0]
        else:
            for prefix in ("/embed/", "/shorts/", "/live/"):
                if parsed.path.startswith(prefix):
                    video_id = parsed.path.split(prefix, 1)[1]
                    break

    if not video_id:
        return None

    return f"https://www.youtube.com/embed/{video_id}"


def parse_genres(values: List[str]) -> List[str]:
    """Accept either repeated form values or a single comma-separated string."""
    if len(values) == 1:
        values = values[0].split(",")
    return [value.strip() for value in values if value and value.strip()]


def build_search_keywords(title: str, genres: List[str]) -> List[str]:
    return [title.lower(), *(genre.lower() for genre in genres)]
