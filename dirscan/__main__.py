
def _positive_int(value:str) -> int:
    import argparse

    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {parsed}")
    return parsed


def _non_negative_int(value:str) -> int:
    import argparse

    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {parsed}")
    return parsed


def reset_signal_pipe_handler():
    import signal

    # let a reader going away (e.g. `| head`) end the process quietly
    if hasattr(signal, "SIGPIPE"):
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)


def build_parser():
    import argparse
    from importlib.metadata import version as metadata_version, PackageNotFoundError
    import logging

    from dirscan.formats import Format
    from dirscan.rollup import SortType

    try:
        version = metadata_version("dirscan")
    except PackageNotFoundError:
        version = "unknown"

    parser = argparse.ArgumentParser(
        prog="dirscan",
        description="Summarize directories, fast.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=version,
    )

    loglvl_grp = parser.add_mutually_exclusive_group()
    loglvl_grp.add_argument("--verbose", "-v", dest="loglevel", action="store_const", const=logging.DEBUG)
    loglvl_grp.add_argument("--quiet", "-q", dest="loglevel", action="store_const", const=logging.WARNING)

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Scan a directory")
    scan_parser.add_argument(
        "--threads", "-t",
        type=_non_negative_int,
        help="Number of threads to use when reading directory metadata. 0 "
        "disables multi-threading entirely. Default twice the number of CPUs.",
    )
    scan_parser.add_argument(
        "--ignore-hidden", "-i",
        action="store_true",
        help="Ignore hidden files",
    )
    scan_parser.add_argument(
        "--actual-size", "-a",
        action="store_true",
        help="Calculate the actual size on disk rather than the apparent size",
    )
    scan_parser.add_argument(
        "--output", "-o",
        help="File to write records to. Default stdout.",
    )
    scan_parser.add_argument(
        "--format", "-f",
        type=Format,
        choices=list(Format),
        default=Format.JSON,
    )
    scan_parser.add_argument(
        "--depth", "-d",
        type=_positive_int,
        help="Group records by only the first DEPTH components of each "
        "directory path. Default one record per directory.",
    )
    scan_parser.add_argument("path")

    parse_parser = subparsers.add_parser("parse", help="Parse results files")
    parse_parser.add_argument(
        "--depth", "-d",
        type=_positive_int,
        default=1,
        help="Summarize every level below PREFIX down to DEPTH components",
    )
    parse_parser.add_argument(
        "--prefix", "-p",
        default="",
        help="Only consider records under this path",
    )
    parse_parser.add_argument(
        "--format", "-f",
        type=Format,
        choices=list(Format),
        default=Format.JSON,
    )
    parse_parser.add_argument(
        "--sort", "-s",
        type=SortType,
        choices=list(SortType),
        default=SortType.NAME,
    )
    parse_parser.add_argument(
        "--limit", "-l",
        type=_non_negative_int,
        help="Show at most LIMIT rows, after sorting",
    )
    parse_parser.add_argument("input")

    return parser


def main(argv=None):
    import logging
    import os
    import sys

    from dirscan import parse, scan
    from dirscan.formats import DecodeError

    reset_signal_pipe_handler()

    parser = build_parser()
    parsed = vars(parser.parse_args(argv))

    loglevel = parsed.pop("loglevel", None)
    if loglevel is None:
        loglevel = logging.INFO

    logging.basicConfig(
        level=loglevel,
        format="%(asctime)s:%(levelname)s:%(name)s: %(message)s",
    )
    logger = logging.getLogger("dirscan")

    command = parsed.pop("command")
    try:
        if command == "scan":
            if not os.path.isdir(parsed["path"]):
                parser.error(f"not a directory: {parsed['path']!r}")
            walk_progress = scan(parsed.pop("path"), **parsed)
            print(walk_progress, file=sys.stderr)
        else:
            parse(**parsed)
    except DecodeError as e:
        logger.error("unable to decode %s: %s", parsed.get("input"), e)
        sys.exit(1)
    except OSError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
