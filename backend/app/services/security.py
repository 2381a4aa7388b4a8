import secrets

from fastapi import Request, UploadFile

from app.errors import AuthError, ValidationError
from app.models.domain import ImageBlob

SESSION_FLAG = "authed"

# Declared upload content types we pass through; everything else is sent as JPEG.
SUPPORTED_MEDIA_TYPES = {
    "image/jpeg": "image/jpeg",
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/png": "image/png",
    "image/webp": "image/webp",
    "image/gif": "image/gif",
}
DEFAULT_MEDIA_TYPE = "image/jpeg"


def verify_pin(candidate, expected: str) -> bool:
    """Exact match after trimming both sides. An unset PIN never matches."""
    expected = (expected or "").strip()
    if not isinstance(candidate, str) or not expected:
        return False
    return secrets.compare_digest(candidate.strip().encode(), expected.encode())


def mark_authenticated(request: Request) -> None:
    request.session[SESSION_FLAG] = True


def destroy_session(request: Request) -> None:
    """Drop everything in the session, not just the auth flag."""
    request.session.clear()


def is_authenticated(request: Request) -> bool:
    return bool(request.session.get(SESSION_FLAG))


async def require_session(request: Request) -> None:
    """Dependency guarding every protected route."""
    if not is_authenticated(request):
        raise AuthError("Not authorized")


def normalize_media_type(content_type: str | None) -> str:
    if not content_type:
        return DEFAULT_MEDIA_TYPE
    base = content_type.split(";", 1)[0].strip().lower()
    return SUPPORTED_MEDIA_TYPES.get(base, DEFAULT_MEDIA_TYPE)


async def read_image_upload(file: UploadFile, max_bytes: int, field: str = "photos") -> ImageBlob:
    """Reads an upload into memory, rejecting anything above max_bytes."""
    # Read one byte past the limit so oversize files are detected without buffering them whole
    contents = await file.read(max_bytes + 1)
    if len(contents) > max_bytes:
        raise ValidationError(
            f"File too large: {file.filename or 'upload'} (max {max_bytes // (1024 * 1024)} MB)",
            field=field,
        )
    return ImageBlob(
        filename=file.filename,
        media_type=normalize_media_type(file.content_type),
        data=contents,
    )
