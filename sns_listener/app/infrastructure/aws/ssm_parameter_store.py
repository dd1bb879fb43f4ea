"""Concrete ParameterStore implementation over a boto3 SSM client. Works with String and SecureString parameters."""
from __future__ import annotations

import asyncio
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from sns_listener.app.infrastructure.aws.client_errors import error_code
from sns_listener.app.ports.parameter_store import ParameterNotFoundError, ParameterStoreError


class SsmParameterStore:
    def __init__(self, client: Any) -> None:
        self._client = client

    async def get_parameter(self, path: str, *, decrypt: bool = True) -> str:
        try:
            response = await asyncio.to_thread(
                self._client.get_parameter,
                Name=path,
                WithDecryption=decrypt,
            )
        except (ClientError, BotoCoreError) as exc:
            if error_code(exc) == "ParameterNotFound":
                raise ParameterNotFoundError(f"parameter {path} not found") from exc
            raise ParameterStoreError(f"get parameter {path} failed: {exc}") from exc
        return response.get("Parameter", {}).get("Value", "")

    async def close(self) -> None:
        self._client.close()
