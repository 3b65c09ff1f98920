# sitegate/cli/main.py
import argparse
import logging
import os
import sys
from typing import List

from ..errors import CLIError, SitegateError, format_error
from . import consent, validate
from ._exit import INTERNAL, USER_ERR


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitegate",
        description="Resolve, validate and gate third-party services for a static site",
        allow_abbrev=False,
    )
    from sitegate import __version__ as _VER

    parser.add_argument("--version", action="version", version=f"sitegate {_VER}")
    parser.add_argument("--debug", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("-c", "--config", dest="config", help="Site config file (overrides discovery)")
    subparsers = parser.add_subparsers(dest="command")

    validate.register(subparsers)
    validate.register_check_id(subparsers)
    consent.register(subparsers)

    return parser


def _configure_logging(ns: argparse.Namespace) -> None:
    if getattr(ns, "debug", False) or os.getenv("SITEGATE_DEBUG") == "1":
        level = logging.DEBUG
    elif getattr(ns, "verbose", False):
        level = logging.INFO
    elif getattr(ns, "quiet", False):
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="[sitegate] %(levelname)s %(name)s: %(message)s",
    )


def main(argv: List[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    try:
        ns = parser.parse_args(argv)
    except SystemExit as e:
        # argparse exits 2 on usage errors and 0 for --help/--version
        return int(e.code or 0)

    if not hasattr(ns, "func"):
        parser.print_help(sys.stderr)
        return USER_ERR

    _configure_logging(ns)
    try:
        return ns.func(ns)
    except CLIError as e:
        sys.stderr.write(f"error: {format_error(e)}\n")
        return USER_ERR
    except SitegateError as e:
        sys.stderr.write(f"error: {format_error(e)}\n")
        return INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
