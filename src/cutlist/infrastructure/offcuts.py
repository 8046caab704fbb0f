"""Offcut inventory and lifecycle tracking.

Offcuts are harvested from the reusable waste regions of a production
result and live independently of any project. Claiming and releasing an
offcut is the only operation in the engine that touches shared state, so
every change is written with compare-and-swap on the offcut version.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import replace
from typing import Protocol

from cutlist.domain.exceptions import (
    ConcurrentModificationError,
    OffcutNotFoundError,
    OffcutUnavailableError,
)
from cutlist.domain.value_objects import Offcut, ProductionResult

from .clock import Clock, utc_now

logger = logging.getLogger(__name__)


class OffcutStore(Protocol):
    """Persistence port for offcut inventory."""

    def get(self, offcut_id: str) -> Offcut:
        """Return the stored offcut.

        Raises:
            OffcutNotFoundError: If the id is unknown.
        """
        ...

    def add(self, offcut: Offcut) -> Offcut:
        """Store a new offcut."""
        ...

    def compare_and_swap(self, expected: Offcut, updated: Offcut) -> Offcut:
        """Replace ``expected`` with ``updated`` if it is still current.

        Returns:
            The stored offcut with its version incremented.

        Raises:
            ConcurrentModificationError: If the stored version differs from
                ``expected.version``.
        """
        ...

    def list_all(self) -> list[Offcut]:
        """Every stored offcut."""
        ...


class InMemoryOffcutStore:
    """Thread-safe in-memory offcut store."""

    def __init__(self, offcuts: list[Offcut] | None = None) -> None:
        self._lock = threading.Lock()
        self._offcuts: dict[str, Offcut] = {}
        for offcut in offcuts or []:
            self.add(offcut)

    def get(self, offcut_id: str) -> Offcut:
        with self._lock:
            try:
                return self._offcuts[offcut_id]
            except KeyError:
                raise OffcutNotFoundError(offcut_id) from None

    def add(self, offcut: Offcut) -> Offcut:
        with self._lock:
            if offcut.id in self._offcuts:
                raise ValueError(f"Offcut {offcut.id} already exists")
            self._offcuts[offcut.id] = offcut
            return offcut

    def compare_and_swap(self, expected: Offcut, updated: Offcut) -> Offcut:
        with self._lock:
            current = self._offcuts.get(expected.id)
            if current is None:
                raise OffcutNotFoundError(expected.id)
            if current.version != expected.version:
                raise ConcurrentModificationError(expected.id)
            stored = replace(updated, id=expected.id, version=current.version + 1)
            self._offcuts[expected.id] = stored
            return stored

    def list_all(self) -> list[Offcut]:
        with self._lock:
            return list(self._offcuts.values())


def _new_offcut_id() -> str:
    return uuid.uuid4().hex


class OffcutTracker:
    """Harvests, claims, releases and finds offcuts.

    Attributes:
        store: Offcut persistence.
        clock: Source of timestamps.
    """

    def __init__(
        self,
        store: OffcutStore,
        clock: Clock = utc_now,
        id_factory: Callable[[], str] = _new_offcut_id,
    ) -> None:
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

    def harvest(
        self, production_result: ProductionResult, project_id: str | None = None
    ) -> list[Offcut]:
        """Create one available offcut per reusable waste region.

        Args:
            production_result: Production nesting to harvest.
            project_id: Project the nesting belongs to.

        Returns:
            The created offcuts in sheet and region order.
        """
        created: list[Offcut] = []
        now = self.clock()
        for sheet in production_result.nesting_sheets:
            for region in sheet.waste_regions:
                if not region.reusable:
                    continue
                offcut = Offcut(
                    id=self.id_factory(),
                    material=sheet.material_id,
                    length=region.length,
                    width=region.width,
                    thickness=sheet.thickness,
                    origin_project_id=project_id,
                    origin_sheet_id=sheet.id,
                    created_at=now,
                )
                created.append(self.store.add(offcut))
        logger.info(
            "Harvested %d offcut(s) from %d sheet(s)",
            len(created),
            len(production_result.nesting_sheets),
        )
        return created

    def mark_used(self, offcut_id: str, project_id: str) -> Offcut:
        """Claim an available offcut for a project.

        Raises:
            OffcutNotFoundError: If the offcut does not exist.
            OffcutUnavailableError: If another project already consumed it.
            ConcurrentModificationError: If it changed during the claim.
        """
        current = self.store.get(offcut_id)
        if not current.available:
            raise OffcutUnavailableError(offcut_id, current.consumed_by_project_id)
        updated = replace(
            current,
            available=False,
            consumed_by_project_id=project_id,
            consumed_at=self.clock(),
        )
        try:
            stored = self.store.compare_and_swap(current, updated)
        except ConcurrentModificationError:
            logger.warning("Claim of offcut %s by %s lost a race", offcut_id, project_id)
            fresh = self.store.get(offcut_id)
            if not fresh.available:
                raise OffcutUnavailableError(offcut_id, fresh.consumed_by_project_id) from None
            raise
        logger.debug("Offcut %s claimed by %s", offcut_id, project_id)
        return stored

    def mark_available(self, offcut_id: str) -> Offcut:
        """Return a consumed offcut to the pool.

        Raises:
            OffcutNotFoundError: If the offcut does not exist.
            ConcurrentModificationError: If it changed during the release.
        """
        current = self.store.get(offcut_id)
        if current.available:
            return current
        updated = replace(
            current, available=True, consumed_by_project_id=None, consumed_at=None
        )
        stored = self.store.compare_and_swap(current, updated)
        logger.debug("Offcut %s returned to the pool", offcut_id)
        return stored

    def query(self, material: str) -> list[Offcut]:
        """Available offcuts of a material, largest first.

        Material matching ignores case.
        """
        wanted = material.casefold()
        matches = [
            offcut
            for offcut in self.store.list_all()
            if offcut.available and offcut.material.casefold() == wanted
        ]
        return sorted(matches, key=lambda o: (-o.area, o.id))
