from __future__ import annotations
import json
import logging
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from .config import MAX_TIMEOUT_S, Settings
from .errors import HttpStreamError
from .stream_consumer import event_source
from .executor import get as http_get, get_raw, post as http_post, post_raw
from .models import ProxyConfig, ProxyType
from .reporter import Reporter
from .util import parse_header

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _settings(timeout: float, auth_bearer: str | None, reassemble: bool = False) -> Settings:
    return Settings(
        timeout_s=timeout,
        auth_bearer=auth_bearer,
        reassemble_lines=reassemble,
    )


def _proxy(proxy_type: ProxyType, proxy: str) -> Optional[ProxyConfig]:
    if proxy_type == ProxyType.NONE:
        return None
    return ProxyConfig(kind=proxy_type, address=proxy)


def _headers(raw: List[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for item in raw:
        try:
            key, value = parse_header(item)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--header")
        headers[key] = value
    return headers


def _body(data: str | None) -> Any:
    if data is None:
        return None
    try:
        return json.loads(data)
    except ValueError as e:
        raise typer.BadParameter(f"--data is not valid JSON: {e}", param_hint="--data")


def _fail(reporter: Reporter, exc: BaseException) -> None:
    reporter.error(exc)
    raise typer.Exit(code=1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output (proxy wiring, requests)."),
) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    if verbose:
        logging.getLogger("httpstream").setLevel(logging.DEBUG)


@app.command("get")
def get_cmd(
    url: str = typer.Argument(..., help="Request URL"),
    header: List[str] = typer.Option([], "--header", "-H", help="Extra header 'Key: Value' (repeatable)"),
    raw: bool = typer.Option(False, "--raw", help="Print the body as text instead of decoding JSON."),
    proxy_type: ProxyType = typer.Option(ProxyType.NONE, "--proxy-type", envvar="HTTPSTREAM_PROXY_TYPE"),
    proxy: str = typer.Option("", "--proxy", envvar="HTTPSTREAM_PROXY", help="Proxy URL (http) or host:port (socks5)"),
    timeout: float = typer.Option(MAX_TIMEOUT_S, "--timeout"),
    auth_bearer: str | None = typer.Option(None, "--auth-bearer"),
):
    """GET a URL and print the decoded JSON (or raw text)."""
    reporter = Reporter(Console())
    settings = _settings(timeout, auth_bearer)
    headers = _headers(header)
    try:
        if raw:
            reporter.text(get_raw(url, headers, _proxy(proxy_type, proxy), settings))
        else:
            reporter.value(http_get(url, headers, _proxy(proxy_type, proxy), settings))
    except HttpStreamError as e:
        _fail(reporter, e)


@app.command("post")
def post_cmd(
    url: str = typer.Argument(..., help="Request URL"),
    data: str | None = typer.Option(None, "--data", "-d", help="JSON request body"),
    header: List[str] = typer.Option([], "--header", "-H", help="Extra header 'Key: Value' (repeatable)"),
    raw: bool = typer.Option(False, "--raw", help="Print the body as text instead of decoding JSON."),
    proxy_type: ProxyType = typer.Option(ProxyType.NONE, "--proxy-type", envvar="HTTPSTREAM_PROXY_TYPE"),
    proxy: str = typer.Option("", "--proxy", envvar="HTTPSTREAM_PROXY", help="Proxy URL (http) or host:port (socks5)"),
    timeout: float = typer.Option(MAX_TIMEOUT_S, "--timeout"),
    auth_bearer: str | None = typer.Option(None, "--auth-bearer"),
):
    """POST a JSON body and print the decoded JSON (or raw text)."""
    reporter = Reporter(Console())
    settings = _settings(timeout, auth_bearer)
    headers = _headers(header)
    body = _body(data)
    try:
        if raw:
            reporter.text(post_raw(url, headers, body, _proxy(proxy_type, proxy), settings))
        else:
            reporter.value(http_post(url, headers, body, _proxy(proxy_type, proxy), settings))
    except HttpStreamError as e:
        _fail(reporter, e)


@app.command("stream")
def stream_cmd(
    url: str = typer.Argument(..., help="Streaming URL"),
    method: str = typer.Option("GET", "--method", "-X"),
    data: str | None = typer.Option(None, "--data", "-d", help="JSON request body"),
    header: List[str] = typer.Option([], "--header", "-H", help="Extra header 'Key: Value' (repeatable)"),
    reassemble: bool = typer.Option(False, "--reassemble", help="Join lines split across read boundaries."),
    proxy_type: ProxyType = typer.Option(ProxyType.NONE, "--proxy-type", envvar="HTTPSTREAM_PROXY_TYPE"),
    proxy: str = typer.Option("", "--proxy", envvar="HTTPSTREAM_PROXY", help="Proxy URL (http) or host:port (socks5)"),
    timeout: float = typer.Option(MAX_TIMEOUT_S, "--timeout"),
    auth_bearer: str | None = typer.Option(None, "--auth-bearer"),
):
    """Stream a newline-delimited response, printing one line per segment."""
    reporter = Reporter(Console())
    settings = _settings(timeout, auth_bearer, reassemble)
    headers = _headers(header)
    body = _body(data)
    try:
        outcome = event_source(
            method.upper(),
            url,
            reporter.segment,
            headers=headers,
            body=body,
            proxy=_proxy(proxy_type, proxy),
            settings=settings,
        )
    except HttpStreamError as e:
        _fail(reporter, e)
    reporter.outcome(outcome)
    raise typer.Exit(code=reporter.exit_code(outcome))


@app.command("dummy")
def dummy(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address for the dummy server"),
    port: int = typer.Option(9999, "--port", help="Port for the dummy server"),
):
    """Run a local server producing JSON, line streams and error responses."""
    try:
        from .dummy.__main__ import main as dummy_main
    except ImportError:
        typer.secho("Dummy server dependencies missing. Install: pip install 'httpstream[dummy]'", fg=typer.colors.YELLOW)
        raise typer.Exit(code=2)
    dummy_main(host=host, port=port)


if __name__ == "__main__":
    app()
