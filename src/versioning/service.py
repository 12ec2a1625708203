"""Concurrent version resolution over a registry client."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants
from .cache import RunCache
from .errors import RegistryError, RegistryErrorKind
from .models import Coordinate, ResolutionOutcome, VersionSet
from .resolvers.base import RegistryClient

logger = logging.getLogger(__name__)


class VersionResolutionService:
    """Resolve published versions for many coordinates with bounded concurrency.

    A fixed pool of worker tasks drains a queue of unique coordinates, so at
    most `max_concurrency` registry lookups are in flight at any time.
    """

    def __init__(
        self,
        client: RegistryClient,
        max_concurrency: Optional[int] = None,
        cache: Optional[RunCache] = None,
    ) -> None:
        self.client = client
        self.max_concurrency = max(1, max_concurrency or Constants.MAX_CONCURRENCY)
        self.cache: RunCache = cache if cache is not None else RunCache()

    async def resolve(self, coordinate: Coordinate) -> VersionSet:
        """Return the versions for one coordinate, consulting the run cache.

        Raises:
            RegistryError: NOT_FOUND, NETWORK or MALFORMED.
        """
        cached = self.cache.get(coordinate)
        if cached is not None:
            return cached
        version_set = await self.client.fetch_versions(coordinate)
        # Another worker may have filled the slot while we awaited.
        if coordinate not in self.cache:
            self.cache.set(coordinate, version_set)
        return version_set

    async def _resolve_outcome(self, coordinate: Coordinate) -> ResolutionOutcome:
        try:
            return ResolutionOutcome(coordinate, version_set=await self.resolve(coordinate))
        except RegistryError as exc:
            logger.debug("Resolution failed for %s: %s", coordinate, exc)
            return ResolutionOutcome(coordinate, error=exc)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning("Unexpected error resolving %s: %s", coordinate, exc)
            return ResolutionOutcome(
                coordinate, error=RegistryError(RegistryErrorKind.NETWORK, coordinate, str(exc))
            )

    async def _worker(self, queue: "asyncio.Queue[Coordinate]", results: Dict[Coordinate, ResolutionOutcome]) -> None:
        while True:
            try:
                coordinate = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results[coordinate] = await self._resolve_outcome(coordinate)
            finally:
                queue.task_done()

    async def resolve_all(self, coordinates: Iterable[Coordinate]) -> Dict[Coordinate, ResolutionOutcome]:
        """Resolve every coordinate; failures are recorded, never raised.

        Args:
            coordinates: Coordinates in extraction order; duplicates are allowed.

        Returns:
            Outcome per unique coordinate, keyed in first-seen order.

        Raises:
            asyncio.CancelledError: The caller was cancelled. Workers are
                cancelled too and partial results are discarded.
        """
        unique: List[Coordinate] = list(dict.fromkeys(coordinates))
        if not unique:
            return {}

        queue: "asyncio.Queue[Coordinate]" = asyncio.Queue()
        for coordinate in unique:
            queue.put_nowait(coordinate)

        results: Dict[Coordinate, ResolutionOutcome] = {}
        pool_size = min(self.max_concurrency, len(unique))
        workers = [asyncio.create_task(self._worker(queue, results)) for _ in range(pool_size)]

        with Timer() as t:
            try:
                await asyncio.gather(*workers)
            finally:
                for task in workers:
                    if not task.done():
                        task.cancel()
                await asyncio.gather(*workers, return_exceptions=True)

        failed = sum(1 for outcome in results.values() if not outcome.ok)
        if is_debug_enabled(logger):
            logger.debug(
                "Resolved coordinates",
                extra=extra_context(
                    event="function_exit", component="resolver", action="resolve_all",
                    outcome="partial" if failed else "success", count=len(unique),
                    failed=failed, workers=pool_size, duration_ms=t.duration_ms(),
                ),
            )
        return {coordinate: results[coordinate] for coordinate in unique}
