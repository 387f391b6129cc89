"""Command-line interface for unweb."""

import argparse
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from . import __version__
from .logging_config import setup_logging
from .models.config import FetchPolicy, UnwebConfig
from .models.results import ConversionOutcome
from .pipeline.converter import ConversionPipeline, convert_url_blocking

HTML_EXTENSIONS = frozenset({".html", ".htm"})


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        metavar="FILE",
        help="YAML configuration file",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    common.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only log errors",
    )

    parser = argparse.ArgumentParser(
        prog="unweb",
        description="Convert HTML pages to clean Markdown",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert a remote page
  unweb convert https://example.com/article

  # Convert a saved page to a file
  unweb convert page.html -o page.md

  # Convert HTML from stdin
  cat page.html | unweb convert -

  # Run the HTTP API
  unweb serve --port 8080
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    convert = subparsers.add_parser(
        "convert",
        parents=[common],
        help="Convert a URL, file or stdin to Markdown",
    )
    convert.add_argument(
        "source",
        help="http(s) URL, .html/.htm file, or '-' for stdin",
    )
    convert.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Write Markdown here instead of stdout",
    )
    convert.add_argument(
        "--base-url",
        type=str,
        default=None,
        metavar="URL",
        help="Resolve relative links in file/stdin input against this URL",
    )

    fetch_group = convert.add_argument_group("fetch settings")
    fetch_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Total fetch timeout (default: 60)",
    )
    fetch_group.add_argument(
        "--max-size",
        type=str,
        default=None,
        metavar="SIZE",
        help="Maximum remote document size, e.g. '10mb'",
    )
    fetch_group.add_argument(
        "--user-agent",
        type=str,
        default=None,
        help="Custom User-Agent string",
    )

    serve = subparsers.add_parser(
        "serve",
        parents=[common],
        help="Run the HTTP API",
    )
    serve.add_argument("--host", type=str, default=None, help="Interface to bind")
    serve.add_argument("--port", "-p", type=int, default=None, help="Port to bind")
    serve.add_argument(
        "--dev",
        action="store_true",
        help="Development mode (CORS limited to the local front-end)",
    )

    return parser


def build_config(args: argparse.Namespace) -> UnwebConfig:
    """Load the YAML config (if any) and apply command-line overrides."""
    config = UnwebConfig.from_yaml_file(args.config) if args.config else UnwebConfig()

    fetch_overrides: dict = {}
    if getattr(args, "timeout", None) is not None:
        fetch_overrides["request_timeout"] = args.timeout
    if getattr(args, "max_size", None) is not None:
        fetch_overrides["max_content_bytes"] = args.max_size
    if getattr(args, "user_agent", None):
        fetch_overrides["user_agent"] = args.user_agent

    server_overrides: dict = {}
    if getattr(args, "host", None):
        server_overrides["host"] = args.host
    if getattr(args, "port", None) is not None:
        server_overrides["port"] = args.port
    if getattr(args, "dev", False):
        server_overrides["development"] = True

    config_kwargs: dict = config.model_dump(exclude_none=True)
    if fetch_overrides:
        config_kwargs["fetch"] = {**config_kwargs["fetch"], **fetch_overrides}
    if server_overrides:
        config_kwargs["server"] = {**config_kwargs["server"], **server_overrides}

    if args.verbose:
        config_kwargs["log_level"] = "DEBUG"
    elif args.quiet:
        config_kwargs["log_level"] = "ERROR"

    return UnwebConfig.model_validate(config_kwargs)


def _read_source(source: str, policy: FetchPolicy) -> str:
    """Read HTML from stdin or a local file, enforcing the upload limits."""
    if source == "-":
        return sys.stdin.read()

    path = Path(source)
    if path.suffix.lower() not in HTML_EXTENSIONS:
        raise ValueError("Only .html and .htm files are allowed")
    if not path.is_file():
        raise ValueError(f"File not found: {path}")
    size = path.stat().st_size
    if size > policy.max_upload_bytes:
        raise ValueError(f"File too large: {size} bytes. Maximum: {policy.max_upload_bytes} bytes")
    return path.read_text(encoding="utf-8", errors="replace")


def run_convert(args: argparse.Namespace, config: UnwebConfig, console: Console) -> int:
    """Run a single conversion and print or save the Markdown."""
    source: str = args.source

    if "://" in source:
        outcome: ConversionOutcome = convert_url_blocking(source, config.fetch)
    else:
        try:
            html = _read_source(source, config.fetch)
        except (ValueError, OSError) as e:
            console.print(f"[red]Error:[/red] {e}")
            return 1
        outcome = ConversionPipeline(config.fetch).convert_html(html, base_url=args.base_url)

    if not outcome.ok:
        assert outcome.error is not None
        console.print(f"[red]Error:[/red] {outcome.error.message}")
        return 1

    assert outcome.result is not None
    if not args.quiet:
        for warning in outcome.result.warnings:
            console.print(f"[yellow]Warning:[/yellow] {warning}")

    markdown = outcome.result.markdown + "\n"
    if args.output:
        args.output.write_text(markdown, encoding="utf-8")
        if not args.quiet:
            console.print(f"[green]Saved:[/green] {args.output}")
    else:
        sys.stdout.write(markdown)

    return 0


def run_serve(config: UnwebConfig, console: Console) -> int:
    """Run the HTTP API until interrupted."""
    from .server.app import run_server

    console.print(f"[bold blue]unweb[/bold blue] v{__version__}")
    console.print(f"Listening on http://{config.server.host}:{config.server.port}")
    run_server(config)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    console = Console(stderr=True)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = build_config(args)
    except Exception as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    setup_logging(config.log_level, str(config.log_file) if config.log_file else None)

    if args.command == "serve":
        return run_serve(config, console)
    return run_convert(args, config, console)


if __name__ == "__main__":
    sys.exit(main())
