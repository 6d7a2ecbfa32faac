"""Shared utilities used across the rental request client."""

import re
import secrets
import time
from typing import Optional

REQUEST_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz@#$^&*"
REQUEST_ID_RANDOM_LENGTH = 119
REQUEST_ID_CHUNK = 6


def digits_only(value: str, limit: Optional[int] = None) -> str:
    """Strip everything except digits, optionally truncating to ``limit`` digits.

    Examples:
        >>> digits_only("17601-1234")
        '176011234'
        >>> digits_only("(555) 123-4567", limit=5)
        '55512'
    """
    digits = re.sub(r"[^\d]", "", value or "")
    if limit is not None:
        return digits[:limit]
    return digits


def generate_request_id(now_ms: Optional[int] = None) -> str:
    """Build a unique request signature id for the x-request-signature-id header.

    The reversed millisecond timestamp is interleaved one character at a
    time with six-character chunks of a random id, so ids stay unique even
    when two requests share a timestamp.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    stamp = str(now_ms)[::-1]
    random_id = "".join(
        secrets.choice(REQUEST_ID_ALPHABET) for _ in range(REQUEST_ID_RANDOM_LENGTH)
    )
    id_chunks = [
        random_id[i:i + REQUEST_ID_CHUNK]
        for i in range(0, len(random_id), REQUEST_ID_CHUNK)
    ]

    mixed: list[str] = []
    for i in range(max(len(stamp), len(id_chunks))):
        if i < len(id_chunks):
            mixed.append(id_chunks[i])
        if i < len(stamp):
            mixed.append(stamp[i])
    return "".join(mixed)
