# -*- coding: utf-8 -*-
"""Location: ./webmerge/cli.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

webmerge command line interface.

Inspect what the validation engine sees for a request URI without running a
server. Output is JSON on stdout.

Usage:
    webmerge resources /app/js/a,b,c.js --context /app
    webmerge etag /app/css/site.css --root ./public --context /app
    webmerge fingerprint /app/js/a,b.js --root ./public --context /app
    webmerge strip /app/js/a,b_wu_0cc175b9.js

Examples:
    >>> parser = build_parser()
    >>> args = parser.parse_args(["resources", "/js/a,b.js"])
    >>> (args.command, args.uri, args.context)
    ('resources', '/js/a,b.js', '')
"""

# Standard
import argparse
import sys
from typing import Optional, Sequence

# Third-Party
import orjson
from pydantic import BaseModel, Field

# First-Party
from webmerge import __version__
from webmerge.config import settings
from webmerge.errors import InvalidResourcePathError
from webmerge.services.logging_service import LoggingService
from webmerge.services.validation_service import ValidationEngine
from webmerge.storage import DocumentRootResolver
from webmerge.utils.fingerprint import add_fingerprint, remove_fingerprint
from webmerge.utils.resource_list import parse_resources

logging_service = LoggingService()
logger = logging_service.get_logger(__name__)


class ValidationReport(BaseModel):
    """What the engine computed for one request URI."""

    uri: str = Field(..., description="Request URI as given")
    resources: list[str] = Field(default_factory=list, description="Resolved resource paths in merge order")
    etag: Optional[str] = Field(default=None, description="Combined validation token")
    last_modified: int = Field(default=0, description="Latest modification time in epoch milliseconds")
    last_modified_http: Optional[str] = Field(default=None, description="Latest modification time as an HTTP date")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Returns:
        argparse.ArgumentParser: Configured parser.
    """
    parser = argparse.ArgumentParser(prog="webmerge", description="Resource identity and cache validation for merged static resources")
    parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Logging level (default: settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    resources = sub.add_parser("resources", help="List the resources named by a request URI")
    resources.add_argument("uri")
    resources.add_argument("--context", default=settings.context_path, help="Context path to strip")

    for name, help_text in (("etag", "Compute ETag and Last-Modified"), ("fingerprint", "Build a fingerprinted URL")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("uri")
        cmd.add_argument("--context", default=settings.context_path, help="Context path to strip")
        cmd.add_argument("--root", default=settings.document_root, help="Document root directory")
        cmd.add_argument("--no-short-circuit", action="store_true", help="Scan every stylesheet reference")

    strip = sub.add_parser("strip", help="Remove a fingerprint from a URL")
    strip.add_argument("uri")

    return parser


def _engine_for(args: argparse.Namespace) -> ValidationEngine:
    """Build an engine for the command's document root.

    Args:
        args: Parsed arguments.

    Returns:
        ValidationEngine: Engine bound to ``args.root``.
    """
    return ValidationEngine(
        DocumentRootResolver(args.root),
        short_circuit_scan=settings.short_circuit_reference_scan and not args.no_short_circuit,
        gzip_suffix=settings.gzip_etag_suffix,
    )


def _resources(args: argparse.Namespace) -> list[str]:
    """Parse the resources named by ``args.uri``.

    Args:
        args: Parsed arguments.

    Returns:
        Resource paths.

    Raises:
        InvalidResourcePathError: If the URI names no resources.
    """
    resources = parse_resources(args.context, args.uri)
    if not resources:
        raise InvalidResourcePathError(args.uri)
    return resources


def report(engine: ValidationEngine, uri: str, resources: list[str]) -> ValidationReport:
    """Compute the validation report for resolved resources.

    Args:
        engine: Validation engine.
        uri: Request URI.
        resources: Resource paths.

    Returns:
        ValidationReport: Computed values.
    """
    last_modified = engine.last_modified_of(resources)
    return ValidationReport(
        uri=uri,
        resources=resources,
        etag=engine.combined_etag(resources),
        last_modified=last_modified,
        last_modified_http=engine.format_header_date(last_modified) if last_modified else None,
    )


def _emit(payload) -> None:
    """Write a JSON payload to stdout.

    Args:
        payload: JSON-serializable value.
    """
    sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode() + "\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the ``webmerge`` console script.

    Args:
        argv: Arguments, ``sys.argv[1:]`` when None.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)
    logging_service.configure(args.log_level)

    try:
        if args.command == "strip":
            _emit({"uri": args.uri, "url": remove_fingerprint(args.uri, settings.fingerprint_separator)})
        elif args.command == "resources":
            _emit({"uri": args.uri, "resources": _resources(args)})
        elif args.command == "etag":
            _emit(report(_engine_for(args), args.uri, _resources(args)).model_dump())
        else:
            resources = _resources(args)
            etag = _engine_for(args).combined_etag(resources)
            _emit({"uri": args.uri, "etag": etag, "url": add_fingerprint(etag, args.uri, settings.fingerprint_separator)})
    except InvalidResourcePathError as e:
        logger.error(str(e))
        return 2
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
