"""
Input format checks (campus email, student id, image URL).
"""

from __future__ import annotations

import re

from pydantic import HttpUrl, TypeAdapter, ValidationError

from utiopia.config import Settings
from utiopia.core.errors import InvalidInput
from utiopia.core.models import BanType

_http_url = TypeAdapter(HttpUrl)


class IdentityValidator:
    """Pattern checks for identity values, patterns come from settings."""

    def __init__(self, settings: Settings):
        self._patterns = {
            BanType.EMAIL: re.compile(settings.email_pattern),
            BanType.STUDENT_ID: re.compile(settings.student_id_pattern),
        }

    def is_valid(self, type: BanType, value: str) -> bool:
        return bool(self._patterns[BanType(type)].match(value or ""))

    def check(self, type: BanType, value: str) -> str:
        """Return the value, or raise InvalidInput naming the bad field."""
        if not self.is_valid(type, value):
            label = "email" if BanType(type) is BanType.EMAIL else "student id"
            raise InvalidInput(f"{label} has an invalid format")
        return value


def check_image_url(value: str | None) -> str | None:
    """
    Return the URL as given (stripped), or None when empty.

    Raises InvalidInput unless it is an absolute http(s) URL.
    """
    value = (value or "").strip()
    if not value:
        return None
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise InvalidInput("image_url must be a valid http(s) URL") from None
    return value
