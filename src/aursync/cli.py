# cli.py
import argparse
import logging
import sys

from . import operations
from .config import Config
from .errors import AursyncError
from .logger import setup_logger

_logger = setup_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aursync", description="AUR recipe sync and package cache tool")
    parser.add_argument("--config", "-c", help="Path to an alternative config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # ------------------------
    # AUR Queries
    # ------------------------

    # info / i
    p_info = subparsers.add_parser("info", aliases=["i"], help="Show AUR package information")
    p_info.add_argument("packages", nargs="+")
    p_info.set_defaults(func=operations.info)

    # search / s
    p_search = subparsers.add_parser("search", aliases=["s"], help="Search the AUR")
    p_search.add_argument("terms", nargs="+")
    p_search.add_argument("--abc", action="store_true", help="Sort alphabetically instead of by votes")
    p_search.add_argument("--reverse", "-r", action="store_true")
    p_search.add_argument("--limit", "-l", type=int)
    p_search.add_argument("--quiet", "-q", action="store_true", help="Only print package names")
    p_search.set_defaults(func=operations.search)

    # open / o
    p_open = subparsers.add_parser("open", aliases=["o"], help="Open a package's AUR page in a browser")
    p_open.add_argument("package")
    p_open.set_defaults(func=operations.open_page)

    # ------------------------
    # Clone Management
    # ------------------------

    # clone / w
    p_clone = subparsers.add_parser("clone", aliases=["w"], help="Clone AUR repositories here")
    p_clone.add_argument("packages", nargs="+")
    p_clone.set_defaults(func=operations.clone)

    # refresh / y
    p_refresh = subparsers.add_parser("refresh", aliases=["y"], help="Pull the latest commits into local clones")
    p_refresh.add_argument("packages", nargs="*", help="Only these clones")
    p_refresh.set_defaults(func=operations.refresh)

    # install / a
    p_install = subparsers.add_parser("install", aliases=["a"], help="Fetch build recipes for packages")
    p_install.add_argument("packages", nargs="+")
    p_install.set_defaults(func=operations.install)

    # ------------------------
    # Package Cache
    # ------------------------

    # cache-info / ci
    p_cinfo = subparsers.add_parser("cache-info", aliases=["ci"], help="Show cached versions of packages")
    p_cinfo.add_argument("packages", nargs="+")
    p_cinfo.set_defaults(func=operations.cache_info)

    # cache-search / cs
    p_csearch = subparsers.add_parser("cache-search", aliases=["cs"], help="Find cached package files")
    p_csearch.add_argument("term")
    p_csearch.set_defaults(func=operations.cache_search)

    # backup / cb
    p_backup = subparsers.add_parser("backup", aliases=["cb"], help="Back up the package cache")
    p_backup.add_argument("target")
    p_backup.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    p_backup.set_defaults(func=operations.backup)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        setup_logger(level=logging.DEBUG)

    # ------------------------
    # Initialize config + operations
    # ------------------------
    config = Config(args.config)
    operations.init(config)

    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        sys.exit(1)

    arg_dict = vars(args)
    for key in ("func", "command", "config", "verbose"):
        arg_dict.pop(key, None)

    try:
        ok = func(**arg_dict)
    except AursyncError as e:
        _logger.error("%s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
