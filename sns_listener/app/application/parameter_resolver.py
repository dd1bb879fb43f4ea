from __future__ import annotations

from sns_listener.app.core.telemetry import Telemetry
from sns_listener.app.domain.errors import ResolutionError
from sns_listener.app.ports.parameter_store import (
    ParameterNotFoundError,
    ParameterStore,
    ParameterStoreError,
)


class ParameterResolver:
    """Resolves a parameter store path to the topic ARN stored there. No retries."""

    def __init__(self, store: ParameterStore, telemetry: Telemetry) -> None:
        self._store = store
        self._telemetry = telemetry

    async def resolve(self, path: str) -> str:
        if not path:
            raise ResolutionError("parameter path is empty")

        with self._telemetry.span("resolve_parameter", parameter_path=path):
            self._telemetry.event("parameter_resolving", parameter_path=path)
            try:
                value = await self._store.get_parameter(path, decrypt=True)
            except ParameterNotFoundError as exc:
                raise ResolutionError(f"parameter {path} does not exist") from exc
            except ParameterStoreError as exc:
                raise ResolutionError(f"unable to read parameter {path}: {exc}") from exc

            if not value:
                raise ResolutionError(f"parameter {path} has an empty value")

            self._telemetry.event("parameter_resolved", parameter_path=path, topic_arn=value)
            return value
