import logging
import random
import re
import time
from pathlib import Path
from typing import List, Optional

from fastapi import UploadFile

from .config import settings

logger = logging.getLogger(__name__)

UPLOAD_KINDS = ("movies", "actors", "directors")
ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|gif|webp")
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
MAX_GALLERY_FILES = 9


class UploadRejected(ValueError):
    pass


def upload_root() -> Path:
    return Path(settings.UPLOAD_DIR)


def create_upload_dirs() -> None:
    for kind in UPLOAD_KINDS:
        (upload_root() / kind).mkdir(parents=True, exist_ok=True)


def build_filename(original_name: str) -> str:
    """name-<epoch ms>-<random>.ext, with whitespace in the name replaced by dashes."""
    original = Path(original_name)
    stem = re.sub(r"\s+", "-", original.stem)
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{stem}-{suffix}{original.suffix}"


def is_image(upload: UploadFile) -> bool:
    extension = Path(upload.filename or "").suffix.lower()
    return bool(ALLOWED_TYPES.search(extension)) and bool(ALLOWED_TYPES.search(upload.content_type or ""))


def has_file(upload: Optional[UploadFile]) -> bool:
    # browsers submit an empty part when no file was chosen
    return upload is not None and bool(upload.filename)


async def save_image(upload: Optional[UploadFile], kind: str) -> Optional[str]:
    """Store an uploaded image and return its public path, or None when nothing was sent."""
    if not has_file(upload):
        return None

    if not is_image(upload):
        raise UploadRejected("Only image files are allowed (jpeg, jpg, png, gif, webp)")

    data = await upload.read()
    if len(data) > MAX_UPLOAD_BYTES:
        raise UploadRejected("File size too large. Maximum size is 5MB.")

    filename = build_filename(upload.filename)
    target = upload_root() / kind
    target.mkdir(parents=True, exist_ok=True)
    (target / filename).write_bytes(data)

    return f"/uploads/{kind}/{filename}"


async def save_images(uploads: List[UploadFile], kind: str, limit: int = MAX_GALLERY_FILES) -> List[str]:
    uploads = [upload for upload in uploads or [] if has_file(upload)]
    if len(uploads) > limit:
        raise UploadRejected(f"Too many files. Maximum is {limit}.")

    saved = []
    try:
        for upload in uploads:
            saved.append(await save_image(upload, kind))
    except UploadRejected:
        delete_stored_files(saved)
        raise
    return saved


def stored_path(public_path: str) -> Path:
    return upload_root() / public_path.removeprefix("/uploads/")


def delete_stored_file(public_path: Optional[str]) -> None:
    if not public_path or not public_path.startswith("/uploads/"):
        return
    path = stored_path(public_path)
    if not path.resolve().is_relative_to(upload_root().resolve()):
        logger.warning("Refusing to delete %s outside the upload directory", public_path)
        return
    if path.exists():
        path.unlink()
        logger.debug("Deleted upload %s", path)


def delete_stored_files(public_paths) -> None:
    for public_path in public_paths or []:
        delete_stored_file(public_path)
