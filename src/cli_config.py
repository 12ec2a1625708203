"""Runtime configuration assembly for the CLI.

Layers are applied lowest first: config file, then DEPBUMP_* environment
variables, then command-line flags, so the CLI has highest precedence.
"""

from __future__ import annotations

import logging

from constants import Constants, _load_yaml_config, apply_config, apply_env_overrides

logger = logging.getLogger(__name__)


def apply_cli_overrides(args) -> None:
    """Apply command-line flags onto Constants."""
    if getattr(args, "REGISTRY_URL", None):
        Constants.REGISTRY_URL_MAVEN = args.REGISTRY_URL.strip().rstrip("/")
    if getattr(args, "CONCURRENCY", None) is not None:
        Constants.MAX_CONCURRENCY = int(args.CONCURRENCY)
    if getattr(args, "BUILD_FILE", None):
        Constants.BUILD_FILE = args.BUILD_FILE
    if getattr(args, "NO_BACKUP", False):
        Constants.CREATE_BACKUP = False
    if getattr(args, "INCLUDE_PRERELEASE", False):
        Constants.INCLUDE_PRERELEASE = True


def load_runtime_config(args) -> None:
    """Merge config file, environment and CLI flags into Constants."""
    cfg = _load_yaml_config(getattr(args, "CONFIG", None))
    if cfg:
        apply_config(cfg)
    apply_env_overrides()
    apply_cli_overrides(args)
    logger.debug(
        "Effective configuration: registry=%s concurrency=%d timeout=%ds build_file=%s",
        Constants.REGISTRY_URL_MAVEN,
        Constants.MAX_CONCURRENCY,
        Constants.REQUEST_TIMEOUT,
        Constants.BUILD_FILE,
    )
