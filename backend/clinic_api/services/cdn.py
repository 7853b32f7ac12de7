"""ImageKit upload signing and file removal.

Browsers upload photos straight to ImageKit with short-lived parameters signed
here; image bytes never pass through this service.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
import uuid
from urllib.parse import quote

import httpx

from clinic_api.core.errors import UpstreamError, ValidationError
from clinic_api.core.settings import settings

logger = logging.getLogger("dental_clinic.cdn")

DELETE_TIMEOUT_SECONDS = 10.0


def sign(private_key: str, token: str, expire: int) -> str:
    return hmac.new(
        private_key.encode("utf-8"), f"{token}{expire}".encode("utf-8"), hashlib.sha1
    ).hexdigest()


def upload_auth_params(
    *,
    private_key: str | None = None,
    ttl_seconds: int | None = None,
    now: float | None = None,
) -> dict:
    private_key = private_key if private_key is not None else settings.imagekit_private_key
    if not private_key:
        raise UpstreamError("Image uploads are not configured", status_code=500)
    ttl = ttl_seconds if ttl_seconds is not None else settings.imagekit_token_ttl_seconds
    token = str(uuid.uuid4())
    expire = int(now if now is not None else time.time()) + ttl
    return {"token": token, "expire": expire, "signature": sign(private_key, token, expire)}


def delete_file(file_id: str | None) -> None:
    if not file_id or not str(file_id).strip():
        raise ValidationError("fileId is required")
    private_key = settings.imagekit_private_key
    if not private_key:
        raise UpstreamError("Image uploads are not configured", status_code=500)
    url = f"{settings.imagekit_api_base.rstrip('/')}/files/{quote(str(file_id), safe='')}"
    try:
        response = httpx.delete(url, auth=(private_key, ""), timeout=DELETE_TIMEOUT_SECONDS)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "ImageKit delete failed for %s: %s %s",
            file_id,
            exc.response.status_code,
            exc.response.text[:200],
        )
        raise UpstreamError("Failed to delete image", status_code=502)
    except httpx.HTTPError as exc:
        logger.warning("ImageKit delete failed for %s: %s", file_id, exc)
        raise UpstreamError("Failed to delete image", status_code=502)


def delete_file_quietly(file_id: str | None) -> bool:
    """Best-effort removal of a replaced photo; failures are logged, never raised."""
    if not file_id:
        return False
    try:
        delete_file(file_id)
    except (UpstreamError, ValidationError) as exc:
        logger.warning("Old photo %s was not removed: %s", file_id, exc.message)
        return False
    return True
