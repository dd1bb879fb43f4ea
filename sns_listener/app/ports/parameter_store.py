"""Port: key-value parameter lookup. Implementations live in infrastructure."""
from __future__ import annotations

from typing import Protocol, runtime_checkable


class ParameterStoreError(Exception):
    """Base for parameter store failures."""


class ParameterNotFoundError(ParameterStoreError):
    """Raised when no parameter exists at the path."""


@runtime_checkable
class ParameterStore(Protocol):
    async def get_parameter(self, path: str, *, decrypt: bool = True) -> str: ...

    async def close(self) -> None: ...
