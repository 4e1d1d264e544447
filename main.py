"""
Bridge entry point: serve language server navigation as MCP tools over stdio.
"""
import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from config import configure, load_settings
from core.exceptions import InvalidOperationError, LSPError
from server import serve
from server.logging_config import setup_logging

logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lsp-bridge",
        description="Expose a language server's code navigation as MCP tools over stdio.",
    )
    parser.add_argument("-w", "--workspace", type=str, default=None,
                        help="Workspace root (default: current directory)")
    parser.add_argument("-l", "--language-server", type=str, default=None,
                        help="Language server executable (default: rust-analyzer)")
    parser.add_argument("--language-server-args", action="append", default=None, metavar="ARG",
                        help="Argument for the language server; repeat for several")
    parser.add_argument("--init-timeout", type=float, default=None,
                        help="Seconds to wait for the language server to initialize")
    parser.add_argument("--request-timeout", type=float, default=None,
                        help="Seconds to wait for each navigation request")
    parser.add_argument("--log-level", type=str, default=None,
                        help="DEBUG, INFO, WARNING or ERROR (default: INFO)")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("serve", help="Run the MCP server (default)")
    config_parser = subparsers.add_parser("config", help="Add the bridge to .mcp.json")
    config_parser.add_argument("--directory", type=str, default=None,
                               help="Project directory (default: current directory)")
    return parser


def run_config(args: argparse.Namespace) -> int:
    try:
        path = configure(args.directory)
    except (InvalidOperationError, OSError) as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    print(f"Created {path}")
    print("Restart your MCP client to pick up the new server.")
    return EXIT_OK


def run_serve(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(
            workspace=args.workspace,
            overrides={
                "language_server": args.language_server,
                "language_server_args": args.language_server_args,
                "init_timeout": args.init_timeout,
                "request_timeout": args.request_timeout,
                "log_level": args.log_level,
            },
        )
    except ValidationError as e:
        logger.error("Invalid configuration:\n%s", e)
        return EXIT_BAD_CONFIG

    setup_logging(settings.log_level)
    logger.info("Starting lsp-bridge with %s", settings.language_server)

    try:
        asyncio.run(serve(settings))
    except LSPError as e:
        logger.error("%s", e)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return EXIT_OK


def cli(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Initialize logging before anything else; serve re-applies the configured level
    setup_logging(args.log_level)

    if args.command == "config":
        return run_config(args)
    return run_serve(args)


def main() -> None:
    sys.exit(cli())


if __name__ == "__main__":
    main()
