"""Argument parsing functionality for depbump."""

import argparse
from constants import Constants


def _positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def _coordinate_key(value):
    parts = value.split(":")
    if len(parts) != 2 or not all(p.strip() for p in parts):
        raise argparse.ArgumentTypeError(f"expected group:artifact, got {value!r}")
    return value.strip()


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="depbump",
        description=(
            "depbump - find newer versions of sbt dependencies and rewrite build.sbt in place"
        ),
        add_help=True,
    )

    parser.add_argument("-d", "--directory",
                        dest="DIRECTORY",
                        help="Project directory containing the build file (default: current directory)",
                        action="store", type=str,
                        default=".")
    parser.add_argument("-f", "--file",
                        dest="BUILD_FILE",
                        help=f"Build file name inside the directory (default: {Constants.BUILD_FILE})",
                        action="store", type=str)

    select_group = parser.add_mutually_exclusive_group()
    select_group.add_argument("-a", "--all",
                              dest="SELECT_ALL",
                              help="Apply every available update without prompting",
                              action="store_true")
    select_group.add_argument("-s", "--select",
                              dest="SELECT",
                              help="Apply the update for group:artifact (can be used multiple times)",
                              action="append", type=_coordinate_key,
                              default=[])

    parser.add_argument("-n", "--dry-run",
                        dest="DRY_RUN",
                        help="Print a unified diff of the changes instead of writing the file",
                        action="store_true")
    parser.add_argument("--pre",
                        dest="INCLUDE_PRERELEASE",
                        help="Consider pre-release versions (RC, milestone, snapshot)",
                        action="store_true")
    parser.add_argument("--no-backup",
                        dest="NO_BACKUP",
                        help="Do not keep a .bak copy of the build file",
                        action="store_true")
    parser.add_argument("-j", "--concurrency",
                        dest="CONCURRENCY",
                        help="Maximum number of concurrent registry lookups",
                        action="store", type=_positive_int)
    parser.add_argument("--registry-url",
                        dest="REGISTRY_URL",
                        help="Maven repository base URL",
                        action="store", type=str)

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--error-on-warnings",
                        dest="ERROR_ON_WARNINGS",
                        help="Exit with a non-zero status code if some dependencies could not be resolved.",
                        action="store_true")

    return parser.parse_args(argv)
