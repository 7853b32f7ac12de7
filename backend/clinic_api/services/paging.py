from __future__ import annotations


def clamp_page(limit: int | None, offset: int | None, *, default: int, maximum: int = 200) -> tuple[int, int]:
    """Pull ``limit``/``offset`` into range instead of rejecting the request."""
    limit = default if not limit else max(1, min(int(limit), maximum))
    offset = max(0, int(offset or 0))
    return limit, offset
