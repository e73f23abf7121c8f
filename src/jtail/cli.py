from __future__ import annotations
import sys
from typing import List, Optional
import click
import typer
from rich.console import Console

from .config import TailOptions, load_config, merge, resolve_mode, show_headers, validate
from .engine import TailEngine
from .errors import ConfigurationError
from .log import get_logger, setup_logging

VERSION = "1.0.0"

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_VERSION = 2

app = typer.Typer(
    help="jtail - output the last part of files, and keep following them as they grow",
    add_completion=False,
)
console = Console(stderr=True, soft_wrap=True)
logger = get_logger("cli")


def _options(
    files: Optional[List[str]],
    config: Optional[str],
    **overrides,
) -> TailOptions:
    defaults = load_config(config) if config else {}
    return merge(defaults, files=list(files or []), **overrides)


@app.command()
def tail(
    files: Optional[List[str]] = typer.Argument(None, help="Files to tail"),
    bytes_: Optional[str] = typer.Option(
        None, "--bytes", "-c",
        help="Output the last K bytes; or use -c +K to output bytes starting with the Kth",
    ),
    lines: Optional[str] = typer.Option(
        None, "--lines", "-n",
        help="Output the last K lines, instead of the last 10; or use -n +K to output lines starting with the Kth",
    ),
    follow: bool = typer.Option(False, "--follow", "-f", help="Output appended data as the file grows"),
    follow_name: bool = typer.Option(False, "-F", help="Same as --follow"),
    poll: bool = typer.Option(False, "--poll", help="Check files periodically instead of using filesystem notifications"),
    sleep_interval: Optional[float] = typer.Option(
        None, "--sleep-interval", "-s",
        help="With --poll, seconds to sleep between checks (default 1.0)",
    ),
    quiet: bool = typer.Option(False, "--quiet", "--silent", "-q", help="Never output headers giving file names"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Always output headers giving file names"),
    stop_on_error: bool = typer.Option(
        False, "--stop-on-error",
        help="Stop following all files as soon as one of them is deleted or replaced",
    ),
    encoding: Optional[str] = typer.Option(None, "--encoding", help="Text encoding of the files (default utf-8)"),
    config: Optional[str] = typer.Option(None, "--config", help="YAML file with default settings"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write diagnostics to this file"),
    version: bool = typer.Option(False, "--version", help="Output version information and exit"),
):
    """
    Print the last 10 lines of each FILE. With more than one FILE, precede
    each with a header giving the file name.
    """
    if version:
        console.print(f"jtail {VERSION}")
        raise typer.Exit(EXIT_VERSION)

    try:
        options = _options(
            files,
            config,
            bytes=bytes_,
            lines=lines,
            follow=(follow or follow_name) or None,
            notifier="poll" if poll else None,
            sleep_interval=sleep_interval,
            quiet=quiet or None,
            verbose=verbose or None,
            encoding=encoding,
            stop_on_error=stop_on_error or None,
            log_level=log_level,
            log_file=log_file,
        )
        validate(options)
        setup_logging(options.log_level, options.log_file)
        logger.debug("Options: %s", options)
    except (ConfigurationError, ValueError) as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}", style="red")
        raise typer.Exit(EXIT_USAGE)

    try:
        engine = TailEngine(
            options.files,
            resolve_mode(options),
            follow=options.follow,
            notifier=options.notifier,
            sleep_interval=options.sleep_interval,
            headers=show_headers(options),
            encoding=options.encoding,
            isolate_failures=not options.stop_on_error,
        )
    except OSError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", style="red")
        raise typer.Exit(EXIT_USAGE)

    try:
        failures = engine.run()
    except KeyboardInterrupt:
        engine.stop()
        console.print("[yellow]Stopped.[/yellow]")
        failures = engine.notifier.failures if engine.notifier is not None else []
    except OSError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", style="red")
        raise typer.Exit(EXIT_USAGE)

    for failure in failures:
        console.print(f"jtail: {failure.message}", style="red")
    if failures:
        raise typer.Exit(EXIT_USAGE)


def main() -> None:
    """Console entry point. Usage errors exit with 1 so that 2 stays reserved for --version."""
    try:
        code = app(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(EXIT_USAGE)
    except click.exceptions.Abort:
        sys.exit(EXIT_USAGE)
    sys.exit(code or EXIT_OK)


if __name__ == "__main__":
    main()
