"""CLI entrypoint execution flow."""

from __future__ import annotations

import logging

from crawler_index.cli.argument_parser import build_parser
from crawler_index.cli.common_runtime import configure_logging, emit_payload
from crawler_index.errors import CrawlerIndexError

_ENGINE_FAILURE_EXIT_CODE = 3
_logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return a process exit code.

    Engine and connection failures are logged and reported through the exit
    code instead of a traceback.

    Args:
        argv (list[str] | None): Optional command-line arguments.

    Returns:
        int: Process exit code.

    """
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 1

    configure_logging(args.log_level)
    try:
        payload = handler(args)
    except CrawlerIndexError as exc:
        _logger.error("%s failed: %s", args.command, exc)  # noqa: TRY400
        return _ENGINE_FAILURE_EXIT_CODE
    emit_payload(payload=payload, output=args.output)
    return 0
