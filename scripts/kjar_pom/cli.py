"""CLI entry point and file I/O.

Wires the content handler to pom.xml and edit-model JSON files:

    kjar-pom decode pom.xml
    kjar-pom render model.json [--output pom.xml] [--dry-run]
    kjar-pom merge pom.xml model.json [--output merged.xml] [--dry-run]
"""

import argparse
import codecs
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .content_handler import PomContentHandler, decode
from .descriptor_tree import declared_encoding
from .errors import PomContentError
from .pom_models import POM, PluginSpec


def _read_model(path: Path) -> POM:
    """Load an edit model from a JSON file in :meth:`POM.to_dict` layout."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as err:
        print(f"ERROR: {path} is not valid JSON: {err}", file=sys.stderr)
        sys.exit(1)
    return POM.from_dict(data)


def _read(path: Path) -> str:
    if not path.exists():
        print(f"ERROR: No such file: {path}", file=sys.stderr)
        sys.exit(1)
    raw = path.read_bytes()
    if raw.startswith(codecs.BOM_UTF8):
        encoding = "utf-8-sig"
    else:
        # The declaration is ASCII, so the head can be read before the encoding is known.
        encoding = declared_encoding(raw[:256].decode("latin-1"))
    try:
        return raw.decode(encoding)
    except (LookupError, UnicodeDecodeError) as err:
        print(f"ERROR: Cannot decode {path} as {encoding}: {err}", file=sys.stderr)
        sys.exit(1)


def _write(path: Path, content: str):
    """Write content to a file, creating parent directories as needed.

    Args:
        path: Filesystem path to write to.
        content: File content string, encoded as its XML declaration says.
    """
    encoding = declared_encoding(content)
    try:
        data = content.encode(encoding, errors="xmlcharrefreplace")
    except LookupError:
        print(f"ERROR: Unknown encoding {encoding!r} declared for {path}", file=sys.stderr)
        sys.exit(1)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    print(f"  ✓ {path}")


def _emit(content: str, output: Optional[Path], dry_run: bool):
    if dry_run or output is None:
        print(content, end="")
    else:
        _write(output, content)


def _handler(plugin_version: Optional[str]) -> PomContentHandler:
    if plugin_version:
        return PomContentHandler(PluginSpec(version=plugin_version))
    return PomContentHandler()


def run(args: argparse.Namespace):
    """Execute one parsed command.

    Content errors are reported on stderr and end the process with status 1.
    """
    try:
        if args.command == "decode":
            pom = decode(_read(args.pom))
            print(json.dumps(pom.to_dict(), indent=2))
        elif args.command == "render":
            content = _handler(args.plugin_version).render(_read_model(args.model))
            _emit(content, args.output, args.dry_run)
        elif args.command == "merge":
            original = _read(args.pom)
            content = _handler(args.plugin_version).merge(_read_model(args.model), original)
            _emit(content, args.output or args.pom, args.dry_run)
    except PomContentError as err:
        print(f"ERROR: {err}", file=sys.stderr)
        sys.exit(1)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments. ``argv`` defaults to ``sys.argv[1:]``."""
    parser = argparse.ArgumentParser(
        prog="kjar-pom",
        description="Read, render, and merge kjar pom.xml files",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    decode_cmd = commands.add_parser("decode", help="Print the edit model of a pom.xml as JSON")
    decode_cmd.add_argument("pom", type=Path, help="Path to pom.xml")

    for name, help_text in (
        ("render", "Write a new pom.xml from an edit model"),
        ("merge", "Apply an edit model onto an existing pom.xml"),
    ):
        cmd = commands.add_parser(name, help=help_text)
        if name == "merge":
            cmd.add_argument("pom", type=Path, help="Path to the existing pom.xml")
        cmd.add_argument("model", type=Path, help="Path to the edit model JSON")
        cmd.add_argument(
            "--output", "-o", type=Path, default=None,
            help="Output file (render: stdout, merge: overwrite POM)",
        )
        cmd.add_argument("--dry-run", "-n", action="store_true", help="Print output without writing files")
        cmd.add_argument(
            "--plugin-version", default=None,
            help="kie-maven-plugin version to inject instead of the packaged one",
        )
    return parser.parse_args(argv)


def main(argv=None):
    """CLI entry point. Parses arguments and delegates to ``run()``."""
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    run(args)
