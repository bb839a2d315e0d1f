from __future__ import annotations

import json
import logging
import sys
import typing

import click
import httpx
from rich.console import Console
from rich.syntax import Syntax

# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def format_value(value: typing.Any) -> str:
    return json.dumps(value, indent=4, ensure_ascii=False, default=str)


def print_value_rich(console: Console, value: typing.Any) -> None:
    console.print(Syntax(format_value(value), "json", theme="monokai"))


def print_error(exc: BaseException, use_rich: bool) -> None:
    if use_rich:
        console = Console(stderr=True)
        console.print(f"[bold red]{type(exc).__name__}[/bold red]: {exc}")
    else:
        click.echo(f"{type(exc).__name__}: {exc}", err=True)


# ---------------------------------------------------------------------------
# Header parsing helper (curl-style -H "Key: Value")
# ---------------------------------------------------------------------------


def parse_header(header: str) -> tuple[str, str]:
    """Parse a 'Key: Value' header string."""
    if ":" not in header:
        raise click.BadParameter(
            f"Invalid header format: '{header}'. Expected 'Key: Value'."
        )
    key, _, value = header.partition(":")
    return key.strip(), value.strip()


# ---------------------------------------------------------------------------
# CLI command
# ---------------------------------------------------------------------------


@click.command(help="Print the first JSON value found at PATH in the response from URL.")
@click.argument("url")
@click.argument("path")
@click.option("-m", "--method", default="GET", help="HTTP method.")
@click.option(
    "-H",
    "--header",
    "headers",
    multiple=True,
    help='Add a header, e.g. -H "Authorization: Bearer token".',
)
@click.option(
    "-t", "--timeout", default=None, type=float, help="Network timeout in seconds."
)
@click.option(
    "--follow-redirects", is_flag=True, default=False, help="Follow redirects."
)
@click.option(
    "--multiple-values",
    is_flag=True,
    default=False,
    help="Accept several concatenated top-level values (NDJSON).",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose output.")
@click.option(
    "--no-color", is_flag=True, default=False, help="Disable colored output."
)
def main(
    url: str,
    path: str,
    method: str,
    headers: tuple[str, ...],
    timeout: float | None,
    follow_redirects: bool,
    multiple_values: bool,
    verbose: bool,
    no_color: bool,
) -> None:
    import jsonseek as _jsonseek_mod

    use_rich = not no_color and sys.stdout.isatty()

    if verbose:
        logging.basicConfig(
            level=logging.WARNING,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
        logging.getLogger("jsonseek").setLevel(logging.DEBUG)

    kwargs: dict[str, typing.Any] = {
        "method": method,
        "follow_redirects": follow_redirects,
        "multiple_values": multiple_values,
    }
    if timeout is not None:
        kwargs["timeout"] = timeout
    if headers:
        header_dict: dict[str, str] = {}
        for h in headers:
            key, value = parse_header(h)
            header_dict[key] = value
        kwargs["headers"] = header_dict

    try:
        with httpx.Client() as client:
            session = _jsonseek_mod.FetchSession(url, path, **kwargs)
            value = session.run(client)
    except (_jsonseek_mod.SeekError, httpx.HTTPError, httpx.InvalidURL) as exc:
        print_error(exc, use_rich)
        sys.exit(1)

    if value is None:
        click.echo(f'JSON path "{path}" not found.', err=True)
        sys.exit(1)

    if use_rich:
        print_value_rich(Console(), value)
    else:
        click.echo(format_value(value))
