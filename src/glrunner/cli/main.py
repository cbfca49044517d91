"""glrunner CLI - Main entry point."""

import json
import logging
import logging.handlers
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from glrunner import __version__
from glrunner.api.client import APIClient
from glrunner.config import ConfigError, RunnerConfig, load_runner_config, merge_overrides
from glrunner.errors import RunnerAPIError
from glrunner.runner import RunnerLifecycle, RunnerService, TokenStore
from glrunner.utils.validation import mask_token, validate_server_url

console = Console()
logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

# Log rotation: 5 MB per file, keep 3 backups
_LOG_MAX_BYTES = 5 * 1024 * 1024
_LOG_BACKUP_COUNT = 3


def _setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    """Configure the glrunner logger with console and optional rotating file handlers."""
    pkg_logger = logging.getLogger("glrunner")
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    pkg_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=_LOG_MAX_BYTES,
            backupCount=_LOG_BACKUP_COUNT,
        )
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        pkg_logger.addHandler(file_handler)


def _connection_options(func):
    """Options shared by the register and unregister commands."""
    options = [
        click.option("--config", "config_path", type=click.Path(), help="Path to a runner YAML config"),
        click.option("--url", default="", help="GitLab URL, host part only (e.g. https://gitlab.com)"),
        click.option("--name", default="", help="Runner name, used to find its auth token file"),
        click.option("--proxy", default="", help="HTTP proxy URL"),
        click.option("--ca-file", default="", help="Trusted CA bundle for https"),
        click.option("--insecure", is_flag=True, help="Disable TLS verification"),
        click.option("--config-dir", default="", help="Directory holding auth-token files"),
        click.option("--noop", is_flag=True, help="Report what would happen without calling GitLab"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _parse_options(values: tuple[str, ...]) -> dict:
    """Parse repeated KEY=VALUE options; values are decoded as JSON when possible."""
    options = {}
    for item in values:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got '{item}'", param_hint="--option")
        try:
            options[key] = json.loads(raw)
        except ValueError:
            options[key] = raw
    return options


def _resolve_config(config_path: str | None, **overrides) -> RunnerConfig:
    """Load the config file (if any), apply CLI overrides and check required values."""
    config = load_runner_config(Path(config_path)) if config_path else RunnerConfig()
    config = merge_overrides(config, **overrides)

    if not config.name:
        raise ConfigError("A runner name is required (--name or 'name' in the config file)")
    error = validate_server_url(config.connection.url)
    if error:
        raise ConfigError(error)
    return config


def _build_lifecycle(config: RunnerConfig, noop: bool) -> RunnerLifecycle:
    client = APIClient(timeout=config.connection.timeout)
    return RunnerLifecycle(
        service=RunnerService(client),
        store=TokenStore(config.config_dir),
        noop=noop,
    )


@click.group()
@click.version_option(version=__version__, prog_name="glrunner")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--log-file", type=click.Path(), help="Also write logs to this file")
def cli(verbose, log_file):
    """glrunner - register and unregister GitLab CI runners.

    Exchanges a registration token for a runner authentication token,
    stores it as <config-dir>/auth-token-<name>, and uses it later to
    unregister the runner.
    """
    _setup_logging(verbose, log_file)


@cli.command()
@_connection_options
@click.option("--registration-token", default="", help="Registration token from GitLab")
@click.option(
    "--option", "-o", "options", multiple=True,
    help="Runner attribute as KEY=VALUE (repeatable, e.g. -o run_untagged=false)",
)
def register(config_path, url, name, proxy, ca_file, insecure, config_dir, noop,
             registration_token, options):
    """Register a runner and store its auth token.

    Does nothing if a token is already stored for the runner.
    """
    try:
        config = _resolve_config(
            config_path,
            url=url,
            name=name,
            proxy=proxy,
            ca_file=ca_file,
            ssl_insecure=True if insecure else None,
            config_dir=config_dir,
            registration_token=registration_token,
            additional_options=_parse_options(options),
        )
        if not config.registration_token:
            raise ConfigError(
                "A registration token is required "
                "(--registration-token or 'registration_token' in the config file)"
            )

        lifecycle = _build_lifecycle(config, noop)
        already_stored = lifecycle.store.exists(config.name)
        conn = config.connection
        result = lifecycle.register_to_file(
            conn.url,
            config.registration_token,
            config.name,
            additional_options=config.additional_options,
            proxy=conn.proxy,
            ca_file=conn.ca_file,
            insecure=conn.ssl_insecure,
        )
    except (ConfigError, RunnerAPIError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)

    if already_stored:
        console.print(f"[yellow]Runner already registered:[/yellow] {escape(config.name)}")
        console.print(f"  Token: {mask_token(result)}")
    elif lifecycle.store.exists(config.name):
        console.print(f"[green]Runner registered:[/green] {escape(config.name)}")
        console.print(f"  Token: {mask_token(result)}")
        console.print(f"  Token file: {lifecycle.store.path_for(config.name)}")
    else:
        console.print(f"[yellow]{escape(result)}[/yellow]")


@cli.command()
@_connection_options
def unregister(config_path, url, name, proxy, ca_file, insecure, config_dir, noop):
    """Unregister a runner using its stored auth token.

    A rejection from GitLab is reported as a warning and the local token
    is still removed, since the runner is most likely already gone.
    """
    try:
        config = _resolve_config(
            config_path,
            url=url,
            name=name,
            proxy=proxy,
            ca_file=ca_file,
            ssl_insecure=True if insecure else None,
            config_dir=config_dir,
        )
        lifecycle = _build_lifecycle(config, noop)
        conn = config.connection
        message = lifecycle.unregister_from_file(
            conn.url,
            config.name,
            proxy=conn.proxy,
            ca_file=conn.ca_file,
            insecure=conn.ssl_insecure,
        )
    except (ConfigError, RunnerAPIError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)

    color = "green" if message.startswith("Successfully") else "yellow"
    console.print(f"[{color}]{escape(message)}[/{color}]")


@cli.command()
@click.option("--name", default="", help="Show a single runner")
@click.option("--config-dir", default="", help="Directory holding auth-token files")
def status(name, config_dir):
    """Show which runners have a stored auth token."""
    store = TokenStore(Path(config_dir) if config_dir else None)
    try:
        names = [name] if name else store.list_runners()
        if not names:
            console.print(f"No runner tokens in {store.config_dir}")
            return
        for runner_name in names:
            if store.exists(runner_name):
                token = mask_token(store.read(runner_name))
                console.print(f"[green]{escape(runner_name)}[/green]  {token}")
            else:
                console.print(f"[yellow]{escape(runner_name)}[/yellow]  not registered")
    except RunnerAPIError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
