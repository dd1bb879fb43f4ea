"""sns-listener: print messages published to an SNS topic.

Creates an SQS queue, subscribes it to the topic, and writes each received message
body to stdout until interrupted. Logs go to stderr. The queue and the subscription
are removed on exit.
"""
import argparse
import asyncio
import signal
import sys
from typing import Any, Sequence

from loguru import logger
from pydantic import ValidationError

from sns_listener.app.composition import create_listener_dependencies
from sns_listener.app.config.settings import Settings
from sns_listener.app.core import SERVICE_NAME
from sns_listener.app.domain.errors import StartupError, TeardownError
from sns_listener.app.domain.listen_context import ListenContext
from sns_listener.app.messaging.consumer import StdoutConsumer


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sns-listener",
        description="Listen to an SNS topic through a temporary SQS queue.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("-t", "--topic-arn", help="ARN of the topic to listen to")
    source.add_argument(
        "-p",
        "--parameter-path",
        help="SSM parameter holding the topic ARN",
    )
    parser.add_argument(
        "-q",
        "--queue-name",
        help='queue name; ".fifo" is added for FIFO topics (default: sns-listener-<uuid>)',
    )
    parser.add_argument(
        "-i",
        "--polling-interval",
        type=int,
        help="milliseconds between receive attempts (default: 1000)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=None, help="log listener events")
    parser.add_argument("-o", "--otlp", action="store_true", default=None, help="enable the OTLP gRPC exporter")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Environment and .env first, then any flag given on the command line."""
    overrides = {
        "topic_arn": args.topic_arn,
        "parameter_path": args.parameter_path,
        "queue_name": args.queue_name,
        "polling_interval_ms": args.polling_interval,
        "verbose": args.verbose,
        "otlp_enabled": args.otlp,
    }
    settings = Settings(**{key: value for key, value in overrides.items() if value is not None})
    # A flag naming one topic source replaces a source coming from the environment.
    if args.topic_arn:
        settings = settings.model_copy(update={"parameter_path": ""})
    return settings


async def run_listener(settings: Settings) -> int:
    dependencies = create_listener_dependencies(settings)
    dependencies.connect()
    try:
        listener = dependencies.listener
        _log("listener_starting", topic_arn=settings.topic_arn, parameter_path=settings.parameter_path)
        try:
            await listener.setup()
        except StartupError as exc:
            logger.error("listener startup failed: {}", exc)
            if exc.rollback_error is not None:
                logger.error("cleanup after failed startup: {}", exc.rollback_error)
            return 1

        queue = listener.queue
        _log(
            "listener_started",
            topic_arn=listener.topic_arn,
            queue_url=queue.url if queue else "",
            subscription_arn=listener.subscription.arn if listener.subscription else "",
        )

        interrupted = asyncio.Event()

        def request_shutdown() -> None:
            if not interrupted.is_set():
                _log("shutdown_signal")
                interrupted.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, request_shutdown)
            except NotImplementedError:
                pass

        ctx = ListenContext()
        listen_task = asyncio.create_task(listener.listen(ctx, StdoutConsumer()))
        interrupt_task = asyncio.create_task(interrupted.wait())
        done, _ = await asyncio.wait(
            {listen_task, interrupt_task},
            return_when=asyncio.FIRST_COMPLETED,
        )

        if listen_task in done:
            interrupt_task.cancel()
            exc = listen_task.exception()
            if exc is not None:
                logger.error("runtime error: {}", exc)
        else:
            ctx.cancel()
            try:
                await listen_task
            except Exception as exc:
                logger.error("error while stopping listener: {}", exc)

        try:
            await listener.teardown()
        except TeardownError as exc:
            logger.error("teardown failed: {}", exc)
            return 1
        _log("listener_stopped")
        return 0
    finally:
        await dependencies.close()


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = settings_from_args(args)
    except ValidationError as e:
        parser.error(str(e))

    if not settings.topic_arn and not settings.parameter_path:
        parser.print_usage(sys.stderr)
        sys.exit(1)

    try:
        exit_code = asyncio.run(run_listener(settings))
    except KeyboardInterrupt:
        _log("listener_interrupted")
        exit_code = 1
    except Exception as e:
        logger.exception("listener failed: {}", e)
        raise
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
