from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .bundle import json_serial, read_json, write_bundle, write_bundles
from .config import get_settings
from .errors import NormalizationError
from .mapping_templates import MappingTemplateIndex
from .models import Resolver
from .normalize import merge_bundles, normalize

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="schemahound",
        description="Rebuild tables and resolvers from a compiled API resource graph",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=settings.log_level, help="logging level (default: %(default)s)")
    subparsers = parser.add_subparsers(dest="command")

    norm = subparsers.add_parser("normalize", help="normalize a deployment resources JSON file")
    norm.add_argument("input", help="JSON file with stacks and their resources")
    norm.add_argument("--output", "-o", default=settings.output_dir, help="directory for normalized bundles")
    norm.add_argument("--merge", action="store_true", help="write one merged bundle.json instead of one file per stack")
    norm.add_argument(
        "--root-types",
        nargs="+",
        default=settings.root_type_names,
        help="type names treated as top-level operations (default: %(default)s)",
    )

    tpl = subparsers.add_parser("templates", help="group mapping-template files by resolver")
    tpl.add_argument("directory", help="resolvers directory with typeName.fieldName.req|res files")
    tpl.add_argument("--bundle", help="normalized bundle JSON, used to recognise HTTP resolvers")

    return parser.parse_args(argv)


def cmd_normalize(args: argparse.Namespace) -> int:
    settings = get_settings()
    document = read_json(Path(args.input))
    bundles = normalize(
        document,
        root_type_names=args.root_types,
        table_suffix=settings.table_name_suffix,
        template_extension=settings.template_extension,
    )
    output_dir = Path(args.output)

    if args.merge:
        merged = merge_bundles(bundles.values(), name="bundle")
        paths = {merged.name: write_bundle(merged, output_dir)}
    else:
        paths = write_bundles(bundles, output_dir)

    summary = {
        "bundles": {name: str(path) for name, path in paths.items()},
        "stacks": {name: bundle.summary() for name, bundle in bundles.items()},
    }
    print(json.dumps(summary, indent=2))
    return 0


def cmd_templates(args: argparse.Namespace) -> int:
    settings = get_settings()
    http_resolvers = {}
    if args.bundle:
        raw = read_json(Path(args.bundle))
        for endpoint, resolvers in (raw.get("http_resolvers") or {}).items():
            http_resolvers[endpoint] = [Resolver(type_name=r["type_name"], field_name=r["field_name"]) for r in resolvers]

    index = MappingTemplateIndex(
        args.directory,
        root_type_names=settings.root_type_names,
        extension=settings.template_extension,
    )
    print(json.dumps(index.group(http_resolvers).to_dict(), indent=2, default=json_serial))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parse_args(["--help"])
    try:
        if args.command == "normalize":
            return cmd_normalize(args)
        if args.command == "templates":
            return cmd_templates(args)
    except NormalizationError as e:
        logger.error(f"Normalization failed: {e}")
        print(json.dumps(e.to_dict(), indent=2, default=json_serial))
        return 1
    raise SystemExit(f"Unknown command {args.command}")  # pragma: no cover


if __name__ == "__main__":
    sys.exit(main())
