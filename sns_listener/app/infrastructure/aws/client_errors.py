"""Helpers for reading botocore client errors."""
from __future__ import annotations

from botocore.exceptions import ClientError


def error_code(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return ""
