"""CLI entrypoints for dockerfile-sources."""

from __future__ import annotations

import argparse
from pathlib import Path

from .config import ConfigError, ENV_MANIFEST_URL, resolve_settings
from .extractor import ALIAS_SPLIT_MODES
from .logging import configure_logging, get_logger
from .manifest import ManifestError, fetch_manifest
from .pipeline import ScanPipeline


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dockerfile-sources",
        description=(
            "List the base images used by every Dockerfile in a set of GitHub "
            "repositories pinned to specific commits."
        ),
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--url",
        default=None,
        help=f"URL of the plaintext repository list (falls back to {ENV_MANIFEST_URL}).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .dockerfile-sources.yml settings file.",
    )
    parser.add_argument(
        "--alias-split",
        choices=ALIAS_SPLIT_MODES,
        default=None,
        help="How stage aliases are stripped from FROM arguments (default: token).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write diagnostics to this file.",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Expose the scan pipeline over HTTP.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="0.0.0.0", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for dockerfile-sources."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    serving = args.command == "serve"
    try:
        settings = resolve_settings(
            args.url,
            config_path=args.config,
            alias_split=args.alias_split,
            require_url=not serving,
        )
    except ConfigError as exc:
        parser.exit(1, f"Error: {exc}\n")

    if serving:
        from .service import run_service

        run_service(host=args.host, port=args.port, settings=settings)
        return

    logger = get_logger("cli")
    logger.info("Downloading repository list from %s", settings.manifest_url)
    try:
        lines = fetch_manifest(settings.manifest_url, timeout=settings.request_timeout)
    except ManifestError as exc:
        parser.exit(1, f"Error downloading repository list: {exc}\n")

    report = ScanPipeline.from_settings(settings).run(lines)
    print(report.to_json())


if __name__ == "__main__":  # pragma: no cover
    main()
