"""CLI entry point for browsing and rendering flex collections."""

import argparse
import json
import sys

from dotenv import load_dotenv

from flexobjects.core.config import config
from flexobjects.core.flex import Flex
from flexobjects.core.objects.collection import parse_order
from flexobjects.utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def _parse_context(pairs: list[str]) -> dict[str, str]:
    context = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Context must be name=value, got {pair!r}")
        context[name] = value
    return context


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse and render flex object collections")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("types", help="List registered flex types")

    list_cmd = sub.add_parser("list", help="List objects of a type as JSON")
    list_cmd.add_argument("type", help="Flex type")
    list_cmd.add_argument("--search", default="", help="Only objects matching this text")
    list_cmd.add_argument("--sort", default="", help="Order, e.g. 'last_name:asc,first_name'")
    list_cmd.add_argument(
        "--key-field", choices=["key", "storage_key", "flex_key"], default=None
    )

    render_cmd = sub.add_parser("render", help="Render a collection layout to stdout")
    render_cmd.add_argument("type", help="Flex type")
    render_cmd.add_argument("--layout", default="default")
    render_cmd.add_argument(
        "--context", action="append", default=[], metavar="NAME=VALUE", help="Template variable"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI workflow."""
    load_dotenv()
    config.reload()
    setup_logging(level="WARNING")

    args = build_parser().parse_args(argv)
    flex = Flex.from_config(config)

    if args.command == "types":
        for flex_type, directory in flex.get_directories().items():
            print(f"{flex_type}\t{directory.get_title()}")
        return 0

    directory = flex.get_directory(args.type)
    if directory is None:
        logger.error("Unknown flex type: %s", args.type)
        return 1

    try:
        collection = directory.get_collection()
        if args.command == "list":
            if args.search:
                collection = collection.search(args.search)
            order = parse_order(args.sort)
            if order:
                collection = collection.sort(order)
            if args.key_field:
                collection = collection.with_key_field(args.key_field)
            print(json.dumps(collection.to_dict(), indent=2, ensure_ascii=False))
        else:
            block = collection.render(args.layout, _parse_context(args.context))
            print(block.get_content())
    except ValueError as e:
        logger.error("%s", e)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
