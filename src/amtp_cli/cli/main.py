"""Command-line interface for amtp."""

from __future__ import annotations

import json
import logging
import re
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Sequence

from amtp_cli.cli.args import Invocation, parse_command_line
from amtp_cli.cli.config import ConfigStore
from amtp_cli.cli.formatter import render
from amtp_cli.cli.orchestrator import CommandOrchestrator
from amtp_cli.errors import AmtpError, ConfigurationError, GatewayUnavailableError, ValidationError

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_NETWORK_ERROR = 2

BOOLEAN_FLAGS = frozenset({"json", "verbose", "help"})

_SENSITIVE_FIELDS = (
    "api_key",
    "apiKey",
    "admin_key",
    "adminKey",
    "x-admin-key",
    "authorization",
    "secret",
    "token",
)

HELP_TEXT = """AMTP CLI - Agent Message Transfer Protocol

Usage: amtp <command> [options]

Commands:
  setup --name <name>          Register as an AMTP agent, save config
  send --to <addr> [--subject <s>] [--payload <json> | --text <t>]
                               Send a message to another agent
  inbox                        Check inbox for messages
  ack <message-id>             Acknowledge/remove a message
  discover [domain]            List agents on the network
  status <message-id>          Check delivery status of a message
  unregister                   Remove agent from gateway
  whoami                       Show current configuration
  version                      Show CLI version

Options:
  --json                       Print the raw result as JSON
  --verbose                    Log requests to stderr

Environment:
  AMTP_GATEWAY_URL             Gateway URL (required)
  AMTP_ADMIN_KEY               Admin API key (for setup/unregister)
  AMTP_AGENT_NAME              Agent name override
  AMTP_AGENT_ADDRESS           Agent address override
  AMTP_API_KEY                 Agent API key override"""


def _cli_version() -> str:
    try:
        return pkg_version("amtp-cli")
    except PackageNotFoundError:
        return "0.0.0+local"


def _sanitize_error_text(value: str) -> str:
    redacted = value
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)([\"']?{re.escape(field)}[\"']?\s*[=:]\s*[\"']?)([^,\s\"'}}]+)",
            r"\1[REDACTED]",
            redacted,
        )
    redacted = re.sub(r"(?i)(bearer\s+)(\S+)", r"\1[REDACTED]", redacted)
    redacted = re.sub(r"(?i)([?&](?:secret|token|api_key)=)([^&\s]+)", r"\1[REDACTED]", redacted)
    return redacted


def _print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {_sanitize_error_text(message)}", file=stderr)
    return code


def _print_amtp_error(stderr, exc: AmtpError) -> int:
    print(f"Error ({exc.code}): {_sanitize_error_text(exc.message)}", file=stderr)
    if exc.details is not None:
        details = json.dumps(exc.details, sort_keys=True)
        print(f"  Details: {_sanitize_error_text(details)}", file=stderr)
    return EXIT_NETWORK_ERROR


def _print_unavailable_error(stderr, exc: GatewayUnavailableError) -> int:
    gateway = exc.gateway_url or "(unset)"
    if exc.connection_refused:
        message = f"Cannot connect to gateway at {gateway}. Is the AMTP gateway running?"
    else:
        message = f"Gateway at {gateway} is unreachable: {exc}"
    return _print_error(stderr, "Error", message, code=EXIT_NETWORK_ERROR)


def _attach_verbose_handler(stderr) -> logging.Handler:
    handler = logging.StreamHandler(stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    package_logger = logging.getLogger("amtp_cli")
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)
    return handler


def _detach_verbose_handler(handler: logging.Handler) -> None:
    package_logger = logging.getLogger("amtp_cli")
    package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


def _emit(outcome, *, as_json: bool, stdout) -> None:
    if as_json:
        print(json.dumps(outcome.result, sort_keys=True), file=stdout)
        return
    print(render(outcome), file=stdout)


def _run(invocation: Invocation, *, store: ConfigStore, stdout, stderr) -> int:
    orchestrator = CommandOrchestrator(store)
    try:
        outcome = orchestrator.run(invocation)
    except ConfigurationError as exc:
        return _print_error(stderr, "Error", str(exc), code=EXIT_VALIDATION_ERROR)
    except ValidationError as exc:
        return _print_error(stderr, "Error", str(exc), code=EXIT_VALIDATION_ERROR)
    except AmtpError as exc:
        return _print_amtp_error(stderr, exc)
    except GatewayUnavailableError as exc:
        return _print_unavailable_error(stderr, exc)
    except OSError as exc:
        return _print_error(
            stderr,
            "Error",
            f"Could not write config file {store.path}: {exc}",
            code=EXIT_VALIDATION_ERROR,
        )

    _emit(outcome, as_json=invocation.flags.get("json") is True, stdout=stdout)
    return EXIT_SUCCESS


def main(
    argv: Sequence[str] | None = None,
    *,
    stdout=sys.stdout,
    stderr=sys.stderr,
    store: ConfigStore | None = None,
) -> int:
    invocation = parse_command_line(
        sys.argv[1:] if argv is None else argv,
        boolean_flags=BOOLEAN_FLAGS,
    )

    if invocation.command in {"", "help", "--help", "-h"} or invocation.flags.get("help"):
        print(HELP_TEXT, file=stdout)
        return EXIT_SUCCESS

    if invocation.command in {"version", "--version"}:
        print(f"amtp-cli {_cli_version()}", file=stdout)
        return EXIT_SUCCESS

    handler = _attach_verbose_handler(stderr) if invocation.flags.get("verbose") is True else None
    try:
        return _run(invocation, store=store or ConfigStore(), stdout=stdout, stderr=stderr)
    finally:
        if handler is not None:
            _detach_verbose_handler(handler)


if __name__ == "__main__":
    raise SystemExit(main())
