"""Command-line interface for shaping and sending authenticated requests."""
from __future__ import annotations

import json
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import typer

try:  # pragma: no cover - exercised in runtime environments
    from rich import box
    from rich.console import Console
    from rich.table import Table
except ImportError as exc:  # pragma: no cover - optional dependency guard
    raise RuntimeError(
        "The CLI requires Rich for table rendering. Install the CLI extras via "
        "'pip install authlayer[cli]' to enable this command."
    ) from exc

from .auth import (
    AccessToken,
    AnonymousAuth,
    AuthScheme,
    AuthSubAuth,
    ClientLoginAuth,
    ClientLoginCredentials,
    ConsumerCredentials,
    DeveloperKeyAuth,
    ThreeLeggedOAuth,
    TwoLeggedOAuth,
)
from .authenticator import Authenticator
from .cli_schema import REQUEST_HEADERS, REQUEST_SUMMARY, TableView, header_rows
from .client import ServiceClient
from .config import ProxyConfig, TransportConfig
from .exceptions import AuthLayerError, RequestError
from .http import HttpRequestFactory, PendingRequest

app = typer.Typer(help="Shape and send authenticated HTTP requests.", no_args_is_help=True)

AUTH_CHOICES = ("anonymous", "oauth2", "oauth3", "authsub", "clientlogin")


def _build_scheme(
    auth: str,
    *,
    consumer_key: str | None,
    consumer_secret: str | None,
    requestor_id: str | None,
    token_key: str | None,
    token_secret: str | None,
    token: str | None,
    email: str | None,
    password: str | None,
    service: str | None,
    timeout: float,
) -> AuthScheme:
    auth = auth.lower()
    if auth not in AUTH_CHOICES:
        raise typer.BadParameter(f"--auth must be one of: {', '.join(AUTH_CHOICES)}.")

    if auth == "anonymous":
        return AnonymousAuth()
    if auth == "authsub":
        if not token:
            raise typer.BadParameter("--token is required when --auth authsub is selected.")
        return AuthSubAuth(token=token)
    if auth == "clientlogin":
        if not email or not password or not service:
            raise typer.BadParameter(
                "--email, --password and --service are required for clientlogin auth."
            )
        return ClientLoginAuth(
            ClientLoginCredentials(email=email, password=password),
            service,
            timeout=timeout,
        )

    if not consumer_key or not consumer_secret:
        raise typer.BadParameter("--consumer-key and --consumer-secret are required for OAuth.")
    consumer = ConsumerCredentials(key=consumer_key, secret=consumer_secret)
    if auth == "oauth2":
        return TwoLeggedOAuth(consumer, requestor_id)
    if not token_key or not token_secret:
        raise typer.BadParameter("--token-key and --token-secret are required for oauth3 auth.")
    return ThreeLeggedOAuth(consumer, AccessToken(key=token_key, secret=token_secret))


def _build_transport(
    verify_ssl: bool,
    cert_path: Path | None,
    timeout: float,
    http_proxy: str | None,
    https_proxy: str | None,
) -> TransportConfig:
    verify_target: bool | str
    if cert_path:
        expanded_cert = cert_path.expanduser()
        if not expanded_cert.exists():
            raise typer.BadParameter("Certificate file not found for --cert option.")
        if not verify_ssl:
            raise typer.BadParameter("Cannot combine --cert with --no-verify.")
        verify_target = str(expanded_cert)
    else:
        verify_target = verify_ssl

    return TransportConfig(
        timeout=timeout,
        verify_ssl=verify_target,
        proxy=ProxyConfig(http=http_proxy, https=https_proxy),
    )


def _build_authenticator(
    app_name: str,
    auth: str,
    *,
    developer_key: str | None = None,
    consumer_key: str | None = None,
    consumer_secret: str | None = None,
    requestor_id: str | None = None,
    token_key: str | None = None,
    token_secret: str | None = None,
    token: str | None = None,
    email: str | None = None,
    password: str | None = None,
    service: str | None = None,
    verify_ssl: bool = True,
    cert_path: Path | None = None,
    timeout: float = 30.0,
    http_proxy: str | None = None,
    https_proxy: str | None = None,
) -> Authenticator:
    scheme = _build_scheme(
        auth,
        consumer_key=consumer_key,
        consumer_secret=consumer_secret,
        requestor_id=requestor_id,
        token_key=token_key,
        token_secret=token_secret,
        token=token,
        email=email,
        password=password,
        service=service,
        timeout=timeout,
    )
    if developer_key:
        scheme = DeveloperKeyAuth(inner=scheme)
    transport = _build_transport(verify_ssl, cert_path, timeout, http_proxy, https_proxy)
    return Authenticator(
        app_name,
        scheme,
        developer_key=developer_key,
        request_factory=HttpRequestFactory(transport),
    )


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


console = Console(force_terminal=False, color_system=None)


def _render_rich_table(view: TableView, rows: Sequence[Mapping[str, Any]]) -> None:
    table = Table(title=view.title, box=box.SIMPLE, header_style="bold cyan")
    for column in view.columns:
        table.add_column(column.header)
    for row in rows:
        table.add_row(*(column.render(row) for column in view.columns))
    console.print(table)


def _describe_request(
    request: PendingRequest, scheme: AuthScheme, *, reveal: bool
) -> dict[str, Any]:
    return {
        "method": request.method,
        "url": request.url,
        "allow_redirects": request.allow_redirects,
        "scheme": scheme.name,
        "headers": header_rows(request.headers, reveal=reveal),
    }


def _present_request(summary: dict[str, Any], *, json_output: bool) -> None:
    if json_output:
        payload = dict(summary)
        payload["headers"] = {row["name"]: row["value"] for row in summary["headers"]}
        _echo_json(payload)
        return
    _render_rich_table(REQUEST_SUMMARY, [summary])
    if summary["headers"]:
        _render_rich_table(REQUEST_HEADERS, summary["headers"])
    else:
        typer.echo("No headers set.")


def _handle_error(exc: AuthLayerError) -> None:
    if exc.status_code is not None:
        message = f"Request failed (status {exc.status_code}): {exc}"
    else:
        message = f"Request failed: {exc}"
    if exc.details and isinstance(exc, RequestError):
        message += f"\nDetails: {exc.details}"
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _shared_options() -> dict[str, Any]:  # pragma: no cover - helper indirection
    # Respect AUTHLAYER_VERIFY_SSL environment variable when present.
    env_verify = os.getenv("AUTHLAYER_VERIFY_SSL")
    if env_verify is None:
        default_verify = True
    else:
        default_verify = env_verify.strip().lower() not in {"0", "false", "no", "off"}

    return {
        "uri": typer.Option(..., "--uri", help="Absolute target URI."),
        "method": typer.Option("GET", "--method", "-X", help="HTTP method.", show_default=True),
        "app_name": typer.Option(
            "authlayer-cli",
            "--app",
            envvar="AUTHLAYER_APPLICATION",
            help="Application name reported to the service.",
        ),
        "auth": typer.Option(
            "anonymous",
            "--auth",
            "-a",
            case_sensitive=False,
            help=f"Authentication scheme ({', '.join(AUTH_CHOICES)}).",
        ),
        "developer_key": typer.Option(
            None,
            "--developer-key",
            envvar="AUTHLAYER_DEVELOPER_KEY",
            help="Developer key sent as an X-GData-Key header.",
        ),
        "consumer_key": typer.Option(
            None, "--consumer-key", envvar="AUTHLAYER_CONSUMER_KEY", help="OAuth consumer key."
        ),
        "consumer_secret": typer.Option(
            None,
            "--consumer-secret",
            envvar="AUTHLAYER_CONSUMER_SECRET",
            help="OAuth consumer secret.",
            hide_input=True,
        ),
        "requestor_id": typer.Option(
            None,
            "--requestor-id",
            help="User the two-legged OAuth consumer acts for.",
        ),
        "token_key": typer.Option(
            None, "--token-key", envvar="AUTHLAYER_TOKEN_KEY", help="OAuth access token."
        ),
        "token_secret": typer.Option(
            None,
            "--token-secret",
            envvar="AUTHLAYER_TOKEN_SECRET",
            help="OAuth access token secret.",
            hide_input=True,
        ),
        "token": typer.Option(
            None, "--token", envvar="AUTHLAYER_TOKEN", help="AuthSub session token."
        ),
        "email": typer.Option(
            None, "--email", envvar="AUTHLAYER_EMAIL", help="ClientLogin account email."
        ),
        "password": typer.Option(
            None,
            "--password",
            "-p",
            envvar="AUTHLAYER_PASSWORD",
            help="ClientLogin account password.",
            hide_input=True,
        ),
        "service": typer.Option(
            None, "--service", help="ClientLogin service name (e.g. youtube, cl, writely)."
        ),
        "verify_ssl": typer.Option(
            default_verify,
            "--verify/--no-verify",
            envvar="AUTHLAYER_VERIFY_SSL",
            help="Enable or disable TLS certificate verification.",
            show_default=True,
        ),
        "cert_path": typer.Option(
            None,
            "--cert",
            envvar="AUTHLAYER_CA_CERT",
            help="Path to a custom CA bundle for TLS verification.",
        ),
        "timeout": typer.Option(30.0, help="Request timeout (seconds).", show_default=True),
        "http_proxy": typer.Option(
            None, "--http-proxy", envvar="AUTHLAYER_HTTP_PROXY", help="Proxy for http URIs."
        ),
        "https_proxy": typer.Option(
            None, "--https-proxy", envvar="AUTHLAYER_HTTPS_PROXY", help="Proxy for https URIs."
        ),
        "output_json": typer.Option(
            False,
            "--json",
            "-j",
            help="Return raw JSON instead of rendering a table.",
        ),
    }


_SHARED_OPTIONS = _shared_options()


@app.command("shape")
def shape(
    uri: str = _SHARED_OPTIONS["uri"],
    method: str = _SHARED_OPTIONS["method"],
    app_name: str = _SHARED_OPTIONS["app_name"],
    auth: str = _SHARED_OPTIONS["auth"],
    developer_key: str | None = _SHARED_OPTIONS["developer_key"],
    consumer_key: str | None = _SHARED_OPTIONS["consumer_key"],
    consumer_secret: str | None = _SHARED_OPTIONS["consumer_secret"],
    requestor_id: str | None = _SHARED_OPTIONS["requestor_id"],
    token_key: str | None = _SHARED_OPTIONS["token_key"],
    token_secret: str | None = _SHARED_OPTIONS["token_secret"],
    token: str | None = _SHARED_OPTIONS["token"],
    email: str | None = _SHARED_OPTIONS["email"],
    password: str | None = _SHARED_OPTIONS["password"],
    service: str | None = _SHARED_OPTIONS["service"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    http_proxy: str | None = _SHARED_OPTIONS["http_proxy"],
    https_proxy: str | None = _SHARED_OPTIONS["https_proxy"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
    reveal: bool = typer.Option(False, "--reveal", help="Print credentials unmasked."),
) -> None:
    """Show the request that would be sent, without sending it."""

    authenticator = _build_authenticator(
        app_name,
        auth,
        developer_key=developer_key,
        consumer_key=consumer_key,
        consumer_secret=consumer_secret,
        requestor_id=requestor_id,
        token_key=token_key,
        token_secret=token_secret,
        token=token,
        email=email,
        password=password,
        service=service,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        http_proxy=http_proxy,
        https_proxy=https_proxy,
    )
    try:
        request = authenticator.create_http_request(method, uri).unwrap()
    except AuthLayerError as exc:
        _handle_error(exc)
        return
    finally:
        authenticator.close()
    summary = _describe_request(request, authenticator.scheme, reveal=reveal)
    _present_request(summary, json_output=output_json)


@app.command("send")
def send(
    uri: str = _SHARED_OPTIONS["uri"],
    method: str = _SHARED_OPTIONS["method"],
    app_name: str = _SHARED_OPTIONS["app_name"],
    auth: str = _SHARED_OPTIONS["auth"],
    developer_key: str | None = _SHARED_OPTIONS["developer_key"],
    consumer_key: str | None = _SHARED_OPTIONS["consumer_key"],
    consumer_secret: str | None = _SHARED_OPTIONS["consumer_secret"],
    requestor_id: str | None = _SHARED_OPTIONS["requestor_id"],
    token_key: str | None = _SHARED_OPTIONS["token_key"],
    token_secret: str | None = _SHARED_OPTIONS["token_secret"],
    token: str | None = _SHARED_OPTIONS["token"],
    email: str | None = _SHARED_OPTIONS["email"],
    password: str | None = _SHARED_OPTIONS["password"],
    service: str | None = _SHARED_OPTIONS["service"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    http_proxy: str | None = _SHARED_OPTIONS["http_proxy"],
    https_proxy: str | None = _SHARED_OPTIONS["https_proxy"],
    data: str | None = typer.Option(None, "--data", "-d", help="Raw request body."),
) -> None:
    """Send an authenticated request and print the raw response."""

    authenticator = _build_authenticator(
        app_name,
        auth,
        developer_key=developer_key,
        consumer_key=consumer_key,
        consumer_secret=consumer_secret,
        requestor_id=requestor_id,
        token_key=token_key,
        token_secret=token_secret,
        token=token,
        email=email,
        password=password,
        service=service,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        http_proxy=http_proxy,
        https_proxy=https_proxy,
    )
    with ServiceClient(authenticator) as client:
        try:
            response = client.request(method, uri, data=data)
        except AuthLayerError as exc:
            _handle_error(exc)
            return
        finally:
            authenticator.close()
    typer.secho(f"HTTP {response.status_code}", fg=typer.colors.GREEN, err=True)
    typer.echo(response.text)

