"""
Command-line interface for the translation relay.

Provides CLI commands for exercising the dispatcher outside a host
application:
- translate: Translate text (argument or stdin) through the endpoint pool
- endpoints: Show the configured endpoint list in rotation order
- config: Show where configuration was loaded from

Usage:
    translation-relay translate --to ja "Hello there"
    echo "Line one\n\nLine two" | translation-relay translate --to de
    translation-relay translate --to fr --endpoint https://a.example --endpoint https://b.example "Hi"
    translation-relay endpoints

Environment Variables:
    RELAY_ENDPOINTS: Comma/space separated default endpoint URLs
    RELAY_TIMEOUT_SECONDS: Per-request deadline (0 = unbounded)
    RELAY_CACHE_PATH: File holding the persisted translation cache
    RELAY_LOG_LEVEL: Log level (default: INFO)
"""

import argparse
import asyncio
import sys

from translation_relay import config as config_module
from translation_relay.config import configure_logging, get_config_status


async def _translate(args: argparse.Namespace, text: str):
    from translation_relay.translation import TranslationDispatcher

    async with TranslationDispatcher.from_config(config_module.config) as dispatcher:
        if args.endpoint:
            dispatcher.replace_endpoints(args.endpoint)
        return await dispatcher.translate_text(text, args.to)


def cmd_translate(args: argparse.Namespace) -> int:
    """Translate one text and print the result."""
    text = " ".join(args.text) if args.text else sys.stdin.read().rstrip("\n")
    if not text.strip():
        print("Error: nothing to translate.", file=sys.stderr)
        return 2

    try:
        result = asyncio.run(_translate(args, text))
    except KeyboardInterrupt:
        print("\nCancelled.")
        return 130

    if result is None:
        print("Error: no translation available.", file=sys.stderr)
        return 1

    print(result)
    return 0


def cmd_endpoints(args: argparse.Namespace) -> int:  # noqa: ARG001
    """List the static endpoint configuration."""
    urls = config_module.config.endpoints.urls
    if not urls:
        print("No endpoints configured (set RELAY_ENDPOINTS or [endpoints] urls).")
        return 1
    for index, url in enumerate(urls):
        marker = "*" if index == 0 else " "
        print(f"{marker} {index}: {url}")
    return 0


def cmd_config(args: argparse.Namespace) -> int:  # noqa: ARG001
    """Print a configuration summary."""
    status = get_config_status()
    print("\n" + "=" * 60)
    print("RELAY CONFIGURATION")
    print("=" * 60)
    print(f"Config file:  {status['config_file_path']}")
    print(f"File exists:  {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to relay.ini for production)")
    print("-" * 60)
    print(f"Endpoints:    {status['endpoint_count']}")
    print(f"Timeout:      {status['timeout_seconds']}s")
    print(f"Cache:        {'on' if status['cache_enabled'] else 'off'}")
    print("=" * 60 + "\n")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="translation-relay",
        description="Failover dispatch across HTTP translation endpoints",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # translate command
    translate_parser = subparsers.add_parser(
        "translate",
        help="Translate text",
        description="Translate text given as arguments, or read from stdin.",
    )
    translate_parser.add_argument(
        "--to",
        "-t",
        required=True,
        help="Target language code (e.g. ja, de, fr)",
    )
    translate_parser.add_argument(
        "--endpoint",
        "-e",
        action="append",
        help="Endpoint URL overriding the configured list (repeatable)",
    )
    translate_parser.add_argument("text", nargs="*", help="Text to translate")
    translate_parser.set_defaults(func=cmd_translate)

    # endpoints command
    endpoints_parser = subparsers.add_parser(
        "endpoints",
        help="List configured endpoints",
    )
    endpoints_parser.set_defaults(func=cmd_endpoints)

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Show configuration summary",
    )
    config_parser.set_defaults(func=cmd_config)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
