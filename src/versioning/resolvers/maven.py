"""Maven repository client reading maven-metadata.xml."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional, Tuple

import aiohttp

from common.http_client import create_session, fetch_text
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from constants import Constants
from ..errors import RegistryError, RegistryErrorKind
from ..models import Coordinate, CrossVersion, VersionSet
from ..version import Version
from .base import RegistryClient

logger = logging.getLogger(__name__)

SCALA_JS_PREFIX = "_sjs1"
SBT_PLUGIN_SUFFIX = "_2.12_1.0"


def binary_suffixes(scala_version: Optional[str]) -> List[str]:
    """Artifact suffixes to try for a %% dependency, most likely first."""
    if scala_version:
        version = Version.parse(scala_version)
        major, minor = version.segment(0), version.segment(1)
        if major == 3:
            return ["_3", "_2.13", "_2.12", ""]
        if major == 2 and minor == 13:
            return ["_2.13", "_2.12", ""]
        if major == 2 and minor == 12:
            return ["_2.12", ""]
    return ["_2.13", "_3", "_2.12", ""]


def artifact_candidates(coordinate: Coordinate, scala_version: Optional[str] = None) -> List[str]:
    """Published artifact ids to try, in order, for a coordinate."""
    if coordinate.cross == CrossVersion.BINARY:
        return [coordinate.artifact + s for s in binary_suffixes(scala_version)]
    if coordinate.cross == CrossVersion.PLATFORM:
        return [
            coordinate.artifact + SCALA_JS_PREFIX + s
            for s in binary_suffixes(scala_version) if s
        ]
    if coordinate.cross == CrossVersion.SBT_PLUGIN:
        return [coordinate.artifact + SBT_PLUGIN_SUFFIX, coordinate.artifact]
    return [coordinate.artifact]


def parse_metadata(text: str) -> List[str]:
    """Extract versioning/versions/version entries from maven-metadata.xml.

    Raises:
        ValueError: The document is not XML or has no versions list.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ValueError(f"invalid XML: {exc}") from exc
    versions_elem = root.find("versioning/versions")
    if versions_elem is None:
        raise ValueError("no versioning/versions element")
    versions = []
    for item in versions_elem.findall("version"):
        if isinstance(item.text, str) and item.text.strip():
            versions.append(item.text.strip())
    return versions


class MavenRegistryClient(RegistryClient):
    """Client for Maven-layout repositories such as Maven Central."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        scala_version: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Repository root; defaults to Constants.REGISTRY_URL_MAVEN.
            scala_version: Project Scala version, used to order suffix lookups.
            session: Externally managed session (not closed by stop()).
        """
        self.base_url = (base_url or Constants.REGISTRY_URL_MAVEN).rstrip("/")
        self.scala_version = scala_version
        self._session = session
        self._owns_session = session is None

    async def start(self) -> None:
        """Open the HTTP session if none was supplied."""
        if self._session is None:
            self._session = create_session()
            self._owns_session = True

    async def stop(self) -> None:
        """Close the HTTP session if this client opened it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def metadata_url(self, group: str, artifact_id: str) -> str:
        """URL of maven-metadata.xml for a group and published artifact id."""
        return f"{self.base_url}/{group.replace('.', '/')}/{artifact_id}/{Constants.MAVEN_METADATA_FILE}"

    async def _fetch_artifact(self, coordinate: Coordinate, artifact_id: str) -> Tuple[str, ...]:
        url = self.metadata_url(coordinate.group, artifact_id)
        status, text = await fetch_text(self._session, url, context="maven")
        if status == 404:
            raise RegistryError(RegistryErrorKind.NOT_FOUND, coordinate, artifact_id)
        if status != 200:
            detail = f"HTTP {status}" if status else text
            raise RegistryError(RegistryErrorKind.NETWORK, coordinate, detail)
        try:
            return tuple(parse_metadata(text))
        except ValueError as exc:
            logger.warning(
                "Malformed Maven metadata",
                extra=extra_context(
                    event="parse", component="maven", action="fetch_versions",
                    outcome="malformed", target=safe_url(url),
                ),
            )
            raise RegistryError(RegistryErrorKind.MALFORMED, coordinate, str(exc)) from exc

    async def fetch_versions(self, coordinate: Coordinate) -> VersionSet:
        """Try each candidate artifact id; the first one found wins.

        Raises:
            RegistryError: NOT_FOUND when no candidate exists, otherwise the
                first NETWORK or MALFORMED failure encountered.
        """
        if self._session is None:
            await self.start()
        for artifact_id in artifact_candidates(coordinate, self.scala_version):
            try:
                versions = await self._fetch_artifact(coordinate, artifact_id)
            except RegistryError as exc:
                if exc.kind == RegistryErrorKind.NOT_FOUND:
                    continue
                raise
            if is_debug_enabled(logger):
                logger.debug(
                    "Resolved Maven artifact",
                    extra=extra_context(
                        event="function_exit", component="maven", action="fetch_versions",
                        outcome="found", target=artifact_id, count=len(versions),
                    ),
                )
            return VersionSet(coordinate, versions, artifact_id)
        raise RegistryError(RegistryErrorKind.NOT_FOUND, coordinate, "no published artifact")
