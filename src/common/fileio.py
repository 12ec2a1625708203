"""Build file discovery, exact reads and atomic writes."""

from __future__ import annotations

import glob
import logging
import os
import shutil
import tempfile
from typing import List, Optional

from constants import Constants

logger = logging.getLogger(__name__)


def build_files(directory: str, build_file: str) -> List[str]:
    """Build definition files of an sbt project, main build file first.

    ``project/plugins.sbt`` and ``project/*.scala`` follow when present. The
    main build file is always listed so that a missing one gets reported.
    """
    paths = [os.path.join(directory, build_file)]
    project_dir = os.path.join(directory, Constants.PROJECT_DIR)
    plugins = os.path.join(project_dir, Constants.PLUGINS_FILE)
    if os.path.isfile(plugins):
        paths.append(plugins)
    paths.extend(sorted(glob.glob(os.path.join(project_dir, "*.scala"))))
    return paths


def read_text(path: str) -> str:
    """Read a UTF-8 file without newline translation.

    Raises:
        OSError: The file cannot be read.
        UnicodeDecodeError: The file is not UTF-8.
    """
    with open(path, "r", encoding="utf-8", newline="") as fh:
        return fh.read()


def write_atomic(path: str, text: str, backup: bool = True) -> Optional[str]:
    """Replace `path` with `text` so readers never observe a partial file.

    The new content is written to a temporary file in the same directory and
    moved over the target with os.replace. With `backup`, the previous
    content is first copied to ``<path>.bak``.

    Returns:
        The backup path, or None when no backup was made.

    Raises:
        OSError: Writing failed; the original file is left as it was.
    """
    backup_path = None
    if backup and os.path.exists(path):
        backup_path = path + Constants.BACKUP_SUFFIX
        shutil.copy2(path, backup_path)
        logger.debug("Backed up %s to %s", path, backup_path)

    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix=".depbump-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        if os.path.exists(path):
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    logger.debug("Wrote %s", path)
    return backup_path
