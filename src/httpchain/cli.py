"""Command-line interface for httpchain."""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.table import Table

from . import __version__
from .client import HttpClient
from .exceptions import ConfigurationError
from .http.builder import RequestBuilder
from .logging_config import logger_sink, setup_logging
from .models.config import RequestConfig
from .models.request import HTTP_METHODS
from .models.response import JsonBody, ResponseRecord


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="httpchain",
        description="Send an HTTP request with retries and print the normalized response",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Simple GET
  httpchain https://api.example.com/items

  # POST JSON with a bearer token, retrying twice
  httpchain https://api.example.com/items -X POST --json '{"name": "widget"}' --bearer $TOKEN --retry 2

  # Load the request from YAML and override the URL
  httpchain https://staging.example.com/items --config request.yaml

  # Save the body to a file
  httpchain https://example.com/report.pdf -o report.pdf
        """,
    )

    parser.add_argument("url", nargs="?", help="URL to request")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--request",
        "-X",
        dest="method",
        type=str.upper,
        choices=sorted(HTTP_METHODS),
        default=None,
        help="HTTP method (default: GET)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="FILE",
        help="YAML request configuration; flags override its values",
    )

    # Headers, cookies, auth
    header_group = parser.add_argument_group("headers and auth")
    header_group.add_argument(
        "--header",
        "-H",
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Add a header (repeatable, duplicates are sent)",
    )
    header_group.add_argument(
        "--cookie",
        "-b",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Add a cookie (repeatable)",
    )
    auth = header_group.add_mutually_exclusive_group()
    auth.add_argument("--bearer", metavar="TOKEN", help="Send 'Authorization: Bearer TOKEN'")
    auth.add_argument("--user", "-u", metavar="USER:PASSWORD", help="HTTP Basic credentials")
    header_group.add_argument("--user-agent", "-A", type=str, help="Custom User-Agent string")

    # Body
    body_group = parser.add_argument_group("request body")
    body = body_group.add_mutually_exclusive_group()
    body.add_argument("--data", "-d", metavar="BODY", help="Raw request body")
    body.add_argument("--json", dest="json_body", metavar="JSON", help="JSON request body")
    body.add_argument(
        "--form",
        "-F",
        action="append",
        metavar="KEY=VALUE",
        help="Form field, sent url-encoded (repeatable)",
    )

    # Network settings
    network_group = parser.add_argument_group("network settings")
    network_group.add_argument("--timeout", type=float, default=None, metavar="MS", help="Timeout per attempt (ms)")
    network_group.add_argument("--no-follow", action="store_true", help="Do not follow redirects")
    network_group.add_argument("--max-redirects", type=int, default=None, help="Maximum redirects (default: 5)")
    network_group.add_argument(
        "--insecure",
        "-k",
        action="store_true",
        help="Skip TLS certificate and host name verification",
    )
    network_group.add_argument("--proxy", type=str, metavar="URL", help="Proxy URL")
    network_group.add_argument("--retry", type=int, default=None, help="Retries after a failed attempt")
    network_group.add_argument(
        "--retry-delay",
        type=int,
        default=None,
        metavar="MS",
        help="Delay before each retry (default: 1000)",
    )
    network_group.add_argument(
        "--fail",
        "-f",
        action="store_true",
        help="Treat HTTP status >= 400 as a failure (retried like transport errors)",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--format",
        choices=["auto", "json", "xml", "text"],
        default=None,
        help="Response format (default: auto from Content-Type)",
    )
    output_group.add_argument("--output", "-o", type=Path, default=None, help="Write the body to a file")
    output_group.add_argument("--show-headers", "-i", action="store_true", help="Print response headers")
    output_group.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    output_group.add_argument("--quiet", "-q", action="store_true", help="Suppress output")

    return parser


def _split_pair(raw: str, separator: str, what: str) -> tuple[str, str]:
    if separator not in raw:
        raise ConfigurationError(f"Invalid {what} {raw!r}, expected NAME{separator}VALUE")
    name, value = raw.split(separator, 1)
    return name.strip(), value.strip()


def build_config(args: argparse.Namespace) -> RequestConfig:
    """Merge the optional YAML file with command-line flags."""
    config_kwargs: dict[str, Any] = {}
    if args.config:
        config_kwargs = RequestConfig.from_yaml_file(args.config).model_dump(exclude_none=True)

    if args.url:
        config_kwargs["url"] = args.url
    if args.method:
        config_kwargs["method"] = args.method

    if args.data is not None:
        config_kwargs["body"] = args.data
    if args.json_body is not None:
        try:
            config_kwargs["json_body"] = json.loads(args.json_body)
        except ValueError as e:
            raise ConfigurationError(f"--json is not valid JSON: {e}") from e
    if args.form:
        config_kwargs["form_data"] = dict(_split_pair(field, "=", "form field") for field in args.form)

    if args.bearer:
        config_kwargs["auth"] = {"type": "Bearer", "credentials": args.bearer}
    if args.user:
        username, password = _split_pair(args.user, ":", "credentials")
        config_kwargs["basic_auth"] = {"username": username, "password": password}
    if args.user_agent:
        config_kwargs["user_agent"] = args.user_agent

    if args.timeout is not None:
        config_kwargs["timeout"] = args.timeout
    if args.no_follow:
        config_kwargs["follow_redirects"] = False
    if args.max_redirects is not None:
        config_kwargs["max_redirects"] = args.max_redirects
        config_kwargs.setdefault("follow_redirects", True)
    if args.insecure:
        config_kwargs["verify_ssl"] = False
    if args.proxy:
        config_kwargs["proxy"] = args.proxy
    if args.retry is not None:
        config_kwargs["retry"] = args.retry
    if args.retry_delay is not None:
        config_kwargs["retry_delay"] = args.retry_delay
        config_kwargs.setdefault("retry", 0)
    if args.fail:
        config_kwargs["fail_on_http_error"] = True
    if args.format:
        config_kwargs["response_format"] = args.format

    return RequestConfig.from_mapping(config_kwargs)


def print_record(console: Console, record: ResponseRecord, show_headers: bool) -> None:
    """Render a response record."""
    if not record.success:
        console.print(f"[red]Request failed[/red] after {record.attempts} attempt(s): {record.error}")
        if record.status_code is not None:
            console.print(f"Status: {record.status_code}")
        return

    color = "red" if record.is_http_error else "green"
    status = record.status_code if record.status_code is not None else "unknown"
    console.print(f"[bold {color}]{status}[/bold {color}] ({record.attempts} attempt(s))")

    if show_headers:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Header")
        table.add_column("Value")
        for name, value in record.headers.items():
            for item in value if isinstance(value, list) else [value]:
                table.add_row(name, item)
        console.print(table)

    if isinstance(record.parsed_body, JsonBody):
        console.print_json(data=record.parsed_body.value)
    elif record.text:
        console.print(record.text, markup=False, highlight=False)


def run_request(args: argparse.Namespace) -> int:
    """Send the request described by the arguments."""
    console = Console()

    # Logs go to stderr so stdout carries only the response
    if args.verbose:
        log_sink = logger_sink(setup_logging("DEBUG", force=True, stream=sys.stderr))
    else:
        setup_logging("ERROR" if args.quiet else "WARNING", force=True, stream=sys.stderr)
        log_sink = None

    try:
        config = build_config(args)
    except (ConfigurationError, OSError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    if not config.url:
        console.print("[red]Error:[/red] Please provide a URL")
        return 1

    client = HttpClient(log_sink=log_sink)
    builder = RequestBuilder.from_config(config, executor=client.executor, log_sink=log_sink)
    try:
        for raw in args.header:
            builder = builder.add_header(*_split_pair(raw, ":", "header"))
        for raw in args.cookie:
            builder = builder.add_cookie(*_split_pair(raw, "=", "cookie"))
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    record = builder.dispatch()

    if args.output and record.success:
        try:
            args.output.write_bytes(record.raw_body or b"")
        except OSError as e:
            console.print(f"[red]Could not write {args.output}:[/red] {e}")
            return 1
        if not args.quiet:
            console.print(f"Saved {len(record.raw_body or b'')} bytes to {args.output}")
    elif not args.quiet:
        print_record(console, record, args.show_headers)

    return 0 if record.success else 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_request(args)


if __name__ == "__main__":
    sys.exit(main())
