"""Constants used in the project."""

import json
import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    EXIT_WARNINGS = 3
    PARSE_ERROR = 4
    REWRITE_ERROR = 5
    CANCELLED = 130


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_MAVEN = "https://repo1.maven.org/maven2"
    MAVEN_METADATA_FILE = "maven-metadata.xml"
    BUILD_FILE = "build.sbt"
    PROJECT_DIR = "project"
    PLUGINS_FILE = "plugins.sbt"
    BACKUP_SUFFIX = ".bak"
    CREATE_BACKUP = True
    INCLUDE_PRERELEASE = False
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    USER_AGENT = "depbump/0.1"

    MAX_CONCURRENCY = 8
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3

    CONFIG_ENV = "DEPBUMP_CONFIG"
    DEFAULT_CONFIG_PATHS = [
        "depbump.yml",
        "depbump.yaml",
        os.path.join("~", ".config", "depbump", "depbump.yml"),
    ]


def _read_config_file(path: str) -> Optional[Dict[str, Any]]:
    """Read a YAML or JSON config file, returning None when unusable."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                import yaml  # pylint: disable=import-outside-toplevel

                data = yaml.safe_load(fh)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return None
    except Exception as exc:  # pylint: disable=broad-exception-caught
        # yaml.YAMLError and friends
        logger.warning("Ignoring malformed config file %s: %s", path, exc)
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level must be a mapping", path)
        return None
    return data


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first available configuration mapping.

    Lookup order: explicit path, $DEPBUMP_CONFIG, then DEFAULT_CONFIG_PATHS.

    Returns:
        dict: Parsed configuration, empty when nothing was found.
    """
    candidates = []
    if path:
        candidates.append(path)
    env_path = os.environ.get(Constants.CONFIG_ENV)
    if env_path:
        candidates.append(env_path)
    candidates.extend(os.path.expanduser(p) for p in Constants.DEFAULT_CONFIG_PATHS)

    for candidate in candidates:
        data = _read_config_file(candidate)
        if data is not None:
            logger.debug("Loaded configuration from %s", candidate)
            return data
        if candidate == path:
            logger.warning("Config file not found or invalid: %s", path)
    return {}


def _coerce_int(value: Any, name: str) -> Optional[int]:
    try:
        result = int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer value for %s: %r", name, value)
        return None
    if result < 1:
        logger.warning("Ignoring non-positive value for %s: %r", name, value)
        return None
    return result


def _coerce_float(value: Any, name: str) -> Optional[float]:
    try:
        result = float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric value for %s: %r", name, value)
        return None
    if result < 0:
        logger.warning("Ignoring negative value for %s: %r", name, value)
        return None
    return result


def apply_config(cfg: Dict[str, Any]) -> None:
    """Apply a configuration mapping onto Constants.

    Unknown keys are ignored; invalid values are skipped with a warning.
    """
    registry = cfg.get("registry")
    if isinstance(registry, dict):
        url = registry.get("url")
        if isinstance(url, str) and url.strip():
            Constants.REGISTRY_URL_MAVEN = url.strip().rstrip("/")
        if "max_concurrency" in registry:
            val = _coerce_int(registry["max_concurrency"], "registry.max_concurrency")
            if val is not None:
                Constants.MAX_CONCURRENCY = val
        if "timeout" in registry:
            val = _coerce_int(registry["timeout"], "registry.timeout")
            if val is not None:
                Constants.REQUEST_TIMEOUT = val
        if "retry_max" in registry:
            val = _coerce_int(registry["retry_max"], "registry.retry_max")
            if val is not None:
                Constants.HTTP_RETRY_MAX = val
        if "retry_base_delay" in registry:
            delay = _coerce_float(registry["retry_base_delay"], "registry.retry_base_delay")
            if delay is not None:
                Constants.HTTP_RETRY_BASE_DELAY_SEC = delay

    build_file = cfg.get("build_file")
    if isinstance(build_file, str) and build_file.strip():
        Constants.BUILD_FILE = build_file.strip()
    if isinstance(cfg.get("backup"), bool):
        Constants.CREATE_BACKUP = cfg["backup"]
    if isinstance(cfg.get("include_prerelease"), bool):
        Constants.INCLUDE_PRERELEASE = cfg["include_prerelease"]


def apply_env_overrides() -> None:
    """Apply DEPBUMP_* environment overrides onto Constants."""
    url = os.environ.get("DEPBUMP_REGISTRY_URL")
    if url and url.strip():
        Constants.REGISTRY_URL_MAVEN = url.strip().rstrip("/")
    concurrency = os.environ.get("DEPBUMP_MAX_CONCURRENCY")
    if concurrency:
        val = _coerce_int(concurrency, "DEPBUMP_MAX_CONCURRENCY")
        if val is not None:
            Constants.MAX_CONCURRENCY = val
    timeout = os.environ.get("DEPBUMP_REQUEST_TIMEOUT")
    if timeout:
        val = _coerce_int(timeout, "DEPBUMP_REQUEST_TIMEOUT")
        if val is not None:
            Constants.REQUEST_TIMEOUT = val
