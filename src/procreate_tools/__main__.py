import argparse
import logging
from typing import Optional

from procreate_tools import ProcreateDocument
from procreate_tools.archive import Container, KeyedArchive
from procreate_tools.constants import DOCUMENT_ARCHIVE
from procreate_tools.errors import ArchiveError, ContainerError, RenderError, TileError
from procreate_tools.version import __version__

try:
    from IPython.lib.pretty import pprint
except ImportError:
    from pprint import pprint

logger = logging.getLogger("procreate_tools")


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="procreate-tools", description="procreate-tools command line utility."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Be more verbose.")
    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Export the flattened image")
    export_parser.add_argument("input_file", help="Input .procreate file")
    export_parser.add_argument("output_file", help="Output image file")

    thumbnail_parser = subparsers.add_parser(
        "thumbnail", help="Export the stored composite layer"
    )
    thumbnail_parser.add_argument("input_file", help="Input .procreate file")
    thumbnail_parser.add_argument("output_file", help="Output image file")

    for sub in (export_parser, thumbnail_parser):
        sub.add_argument(
            "--lenient",
            action="store_true",
            help="Leave corrupt tiles transparent instead of failing.",
        )

    show_parser = subparsers.add_parser("show", help="Show the layer tree")
    show_parser.add_argument("input_file", help="Input .procreate file")

    debug_parser = subparsers.add_parser("debug", help="Show the raw document archive")
    debug_parser.add_argument("input_file", help="Input .procreate file")

    for sub in (export_parser, thumbnail_parser, show_parser, debug_parser):
        sub.add_argument(
            "--entry",
            default=DOCUMENT_ARCHIVE,
            help="Name of the document archive entry (default: %(default)s).",
        )

    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> Optional[int]:
    args = parse_args(argv)

    logging.basicConfig(level=logging.WARNING)
    if args.verbose:
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    try:
        if args.command in ("export", "thumbnail"):
            document = ProcreateDocument.open(
                args.input_file, strict=not args.lenient, entry=args.entry
            )
            if args.command == "export":
                image = document.composite()
            else:
                image = document.thumbnail()
            image.save(args.output_file)
            logger.info("Saved %s" % args.output_file)

        elif args.command == "show":
            with Container.open(args.input_file) as container:
                archive = KeyedArchive.frombytes(container.read(args.entry))
            document = ProcreateDocument.from_archive(archive)
            pprint(document)
            _show_tree(document.root, 0)

        elif args.command == "debug":
            with Container.open(args.input_file) as container:
                archive = KeyedArchive.frombytes(container.read(args.entry))
            pprint(archive.expand())

    except (ArchiveError, ContainerError, TileError, RenderError) as e:
        logger.error("%s: %s" % (type(e).__name__, e))
        return 1

    return None


def _show_tree(group, depth: int) -> None:
    for node in group:
        print("%s%r" % ("  " * depth, node))
        if node.kind == "group":
            _show_tree(node, depth + 1)


if __name__ == "__main__":
    raise SystemExit(main())
