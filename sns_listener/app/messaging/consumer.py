"""Stdout consumer: prints message bodies so they can be piped without log noise."""
from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger

from sns_listener.app.domain.listen_context import ListenContext
from sns_listener.app.domain.models import MessageContent


class StdoutConsumer:
    """Consumer implementation writing one message body per line."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    async def on_message(self, ctx: ListenContext, message: MessageContent) -> None:
        print(message.body, file=self._stream or sys.stdout, flush=True)

    async def on_error(self, ctx: ListenContext, error: Exception) -> None:
        logger.warning("listener error: {}", error)
