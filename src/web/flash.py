"""One-shot flash messages carried in a short-lived cookie."""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Literal

from fastapi import Request, Response

FLASH_COOKIE_NAME = "flash"
FLASH_COOKIE_MAX_AGE = 60

FlashKind = Literal["notice", "alert"]


@dataclass(frozen=True)
class Flash:
    message: str
    kind: FlashKind = "notice"


def set_flash(response: Response, message: str, kind: FlashKind = "notice") -> None:
    """Attach a message to show on the next page."""
    payload = json.dumps({"message": message, "kind": kind}).encode()
    response.set_cookie(
        key=FLASH_COOKIE_NAME,
        value=base64.urlsafe_b64encode(payload).decode(),
        max_age=FLASH_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
    )


def read_flash(request: Request) -> Flash | None:
    """The pending message, or None when absent or unreadable."""
    raw = request.cookies.get(FLASH_COOKIE_NAME)
    if not raw:
        return None
    try:
        data = json.loads(base64.urlsafe_b64decode(raw.encode()))
        kind = "alert" if data.get("kind") == "alert" else "notice"
        return Flash(message=str(data["message"]), kind=kind)
    except (binascii.Error, ValueError, KeyError, TypeError, AttributeError):
        return None


def clear_flash(response: Response) -> None:
    response.delete_cookie(key=FLASH_COOKIE_NAME)
