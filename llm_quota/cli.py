from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from llm_quota import __version__
from llm_quota.core.config.settings import Settings, get_settings
from llm_quota.modules.usage.providers import PROVIDERS
from llm_quota.modules.usage.service import EXIT_FAILURE, run
from llm_quota.modules.usage.types import UsageEnvelope

_PROVIDER_HELP = {
    "claude": "Claude OAuth usage limits (5h, 7d, 7d sonnet)",
    "codex": "Codex usage limits (5h, 7d)",
}
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="llm-quota", description="Usage limit utilities")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=_LOG_LEVELS,
        default=None,
        help="Log level for stderr diagnostics (default: LLM_QUOTA_LOG_LEVEL or WARNING)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Request timeout in seconds (default: LLM_QUOTA_TIMEOUT_SECONDS or 30)",
    )
    parser.add_argument("--pretty", action="store_true", help="Indent the JSON output")

    subparsers = parser.add_subparsers(dest="provider", metavar="{claude,codex}", required=True)
    for name in PROVIDERS:
        subparsers.add_parser(name, help=_PROVIDER_HELP.get(name))

    args = parser.parse_args(argv)
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be greater than zero.")
    return args


def _load_settings(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    overrides: dict[str, object] = {}
    if args.timeout is not None:
        overrides["request_timeout_seconds"] = args.timeout
    if args.log_level:
        overrides["log_level"] = args.log_level
    if not overrides:
        return settings
    return settings.model_copy(update=overrides)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _emit(envelope: UsageEnvelope, *, pretty: bool) -> None:
    print(json.dumps(envelope.to_payload(), allow_nan=False, indent=2 if pretty else None))


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    try:
        settings = _load_settings(args)
    except ValidationError as exc:
        _configure_logging("WARNING")
        fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in exc.errors())
        _emit(UsageEnvelope.failure(f"invalid configuration: {fields}"), pretty=args.pretty)
        sys.exit(EXIT_FAILURE)

    _configure_logging(settings.log_level)
    envelope, exit_code = asyncio.run(run(args.provider, settings=settings))
    _emit(envelope, pretty=args.pretty)
    sys.exit(exit_code)
