"""depbump - interactive dependency upgrades for sbt builds

    Reads build.sbt together with project/plugins.sbt and project/*.scala,
    looks up newer versions of every declared dependency on a Maven
    repository, lets the user pick upgrades and rewrites only the version
    literals that changed.

    Returns:
        int: Exit code
"""
import asyncio
import difflib
import logging
import os
import sys

from constants import ExitCodes, Constants
from common.fileio import build_files, read_text, write_atomic
from common.logging_utils import add_file_handler, configure_logging, extra_context, is_debug_enabled
from args import parse_args
from cli_config import load_runtime_config
from cli_select import (
    NO_UPDATES_MESSAGE,
    format_candidates,
    format_summary,
    prompt_selection,
)
from versioning.classifier import build_candidates
from versioning.errors import ParseError, RegistryErrorKind, RewriteError
from versioning.parser import extract, scala_version
from versioning.resolvers.maven import MavenRegistryClient
from versioning.rewrite import rewrite
from versioning.service import VersionResolutionService
from versioning.session import SelectionSession, linked_coordinates

logger = logging.getLogger(__name__)


async def _resolve_async(coordinates, project_scala_version):
    async with MavenRegistryClient(
        base_url=Constants.REGISTRY_URL_MAVEN,
        scala_version=project_scala_version,
    ) as client:
        service = VersionResolutionService(client, max_concurrency=Constants.MAX_CONCURRENCY)
        return await service.resolve_all(coordinates)


def resolve_outcomes(declarations):
    """Resolve every declared coordinate against the configured repository.

    Args:
        declarations (list): Declarations from the extractor.

    Returns:
        dict: ResolutionOutcome per unique Coordinate, in first-seen order.
    """
    coordinates = [d.coordinate for d in declarations]
    return asyncio.run(_resolve_async(coordinates, scala_version(declarations)))


def report_failures(outcomes):
    """Log one warning per coordinate that could not be resolved.

    Returns:
        list: The failed outcomes.
    """
    failed = [o for o in outcomes.values() if not o.ok]
    for outcome in failed:
        logging.warning("Could not resolve %s: %s", outcome.coordinate, outcome.error)
    if failed:
        logging.warning("%d of %d dependencies could not be resolved.", len(failed), len(outcomes))
    return failed


def load_build(directory):
    """Read and parse every build definition file of the project.

    Exits with FILE_ERROR or PARSE_ERROR before any network traffic when a
    file cannot be read or parsed.

    Returns:
        dict: (text, declarations) per path, main build file first.
    """
    build = {}
    for path in build_files(directory, Constants.BUILD_FILE):
        try:
            text = read_text(path)
        except FileNotFoundError:
            logging.error("Build file not found: %s", path)
            sys.exit(ExitCodes.FILE_ERROR.value)
        except (OSError, UnicodeDecodeError) as e:
            logging.error("Cannot read %s: %s", path, e)
            sys.exit(ExitCodes.FILE_ERROR.value)
        try:
            declarations = extract(text)
        except ParseError as e:
            logging.error("Cannot parse %s: %s", path, e)
            sys.exit(ExitCodes.PARSE_ERROR.value)
        if declarations:
            logging.info("Found %d dependency declarations in %s", len(declarations), path)
        build[path] = (text, declarations)
    return build


def merged_links(build):
    """Linked coordinates of all files; spans only link within one file."""
    links = {}
    for _, declarations in build.values():
        for group in linked_coordinates(declarations).values():
            merged = set(group)
            for coordinate in group:
                merged |= links.get(coordinate, frozenset())
            merged = frozenset(merged)
            for coordinate in merged:
                links[coordinate] = merged
    return links


def rewrite_all(build, selection):
    """Apply the selection to every file in memory.

    Returns:
        dict: New text per path, only for files that changed.

    Raises:
        RewriteError: Any file's edits failed to validate; nothing is returned.
    """
    updated = {}
    for path, (text, declarations) in build.items():
        try:
            new_text = rewrite(text, declarations, selection)
        except RewriteError as e:
            logging.error("Refusing to rewrite %s: %s", path, e)
            raise
        if new_text != text:
            updated[path] = new_text
    return updated


def choose_updates(args, candidates, links):
    """Decide which candidates to apply.

    Returns:
        tuple|None: The selection, or None when the user quit. An empty
        tuple means nothing is to be written.
    """
    session = SelectionSession(candidates, links=links)
    if args.SELECT_ALL:
        session.toggle_all()
        return session.submit()
    if args.SELECT:
        wanted = set(args.SELECT)
        for index, candidate in enumerate(candidates):
            if candidate.coordinate.key in wanted:
                session.select(index)
        unknown = wanted - {c.coordinate.key for c in candidates}
        for key in sorted(unknown):
            logging.warning("No update available for %s", key)
        return session.submit()
    if sys.stdin.isatty():
        return prompt_selection(session)

    for line in format_candidates(candidates):
        print(line)
    logging.info("Not a terminal; use --all or --select to apply updates.")
    return ()


def _finish(args, failed, outcomes):
    if failed and len(failed) == len(outcomes) and all(
        o.error is not None and o.error.kind == RegistryErrorKind.NETWORK for o in failed
    ):
        logging.error("Registry unreachable: %s", Constants.REGISTRY_URL_MAVEN)
        sys.exit(ExitCodes.CONNECTION_ERROR.value)
    if failed and args.ERROR_ON_WARNINGS:
        logging.error("Warnings present, exiting with non-zero status code.")
        sys.exit(ExitCodes.EXIT_WARNINGS.value)
    sys.exit(ExitCodes.SUCCESS.value)


def main(argv=None):
    """Main function of the program."""
    # pylint: disable=too-many-branches, too-many-statements
    args = parse_args(argv)
    # Honor CLI --loglevel by passing it to centralized logger via env
    if getattr(args, "LOG_LEVEL", None):
        os.environ["DEPBUMP_LOG_LEVEL"] = str(args.LOG_LEVEL).upper()
    configure_logging()
    if getattr(args, "LOG_FILE", None):
        add_file_handler(args.LOG_FILE)

    load_runtime_config(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )

    build = load_build(args.DIRECTORY)
    declarations = [d for _, decls in build.values() for d in decls]
    if not declarations:
        logging.warning("No dependencies found in %s", args.DIRECTORY)
        sys.exit(ExitCodes.SUCCESS.value)

    try:
        outcomes = resolve_outcomes(declarations)
    except KeyboardInterrupt:
        logging.warning("Interrupted, no changes written.")
        sys.exit(ExitCodes.CANCELLED.value)

    failed = report_failures(outcomes)
    candidates = build_candidates(declarations, outcomes, Constants.INCLUDE_PRERELEASE)
    if is_debug_enabled(logger):
        logger.debug(
            "Built candidates",
            extra=extra_context(
                event="decision", component="cli", action="build_candidates",
                outcome="empty" if not candidates else "non_empty", count=len(candidates),
            )
        )
    if not candidates:
        print(NO_UPDATES_MESSAGE)
        _finish(args, failed, outcomes)

    try:
        selection = choose_updates(args, candidates, merged_links(build))
    except KeyboardInterrupt:
        selection = None
    if selection is None:
        sys.exit(ExitCodes.CANCELLED.value)
    if not selection:
        logging.info("Nothing selected, no changes written.")
        _finish(args, failed, outcomes)

    try:
        updated = rewrite_all(build, selection)
    except RewriteError:
        sys.exit(ExitCodes.REWRITE_ERROR.value)

    if args.DRY_RUN:
        for path, text in updated.items():
            diff = difflib.unified_diff(
                build[path][0].splitlines(keepends=True),
                text.splitlines(keepends=True),
                fromfile=path,
                tofile=path,
            )
            sys.stdout.writelines(diff)
    else:
        for path, text in updated.items():
            try:
                write_atomic(path, text, backup=Constants.CREATE_BACKUP)
            except OSError as e:
                logging.error("Cannot write %s: %s", path, e)
                sys.exit(ExitCodes.FILE_ERROR.value)
        print(format_summary(selection))

    _finish(args, failed, outcomes)


if __name__ == "__main__":
    main()
