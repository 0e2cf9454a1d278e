# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Variant record storage.

The engine never owns product persistence. It reads and writes one record
per variant through the VariantStore protocol; records are plain dicts in
the layout produced by VariantColorState.to_record().

Writes are compare-and-swap on the ``version`` field: a save states the
version it read, and the store rejects it with StaleWrite if the record
moved in the meantime.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import replace
from typing import Iterator, Optional, Protocol

from loguru import logger

from chromafacet.errors import PersistenceFailed, StaleWrite
from chromafacet.schema import VariantColorState
from chromafacet.schema.variant_color import FIELD_VARIANT_ID, FIELD_VERSION


class VariantStore(Protocol):
    """Read/write interface to the product document store."""

    def load(self, variant_id: str) -> Optional[dict]:
        """Return the stored record, or None if there is none."""
        ...

    def save(self, record: dict, expected_version: int) -> None:
        """
        Write ``record`` if the stored version equals ``expected_version``
        (0 = record must not exist yet).

        Raises:
            StaleWrite: on version conflict
        """
        ...

    def delete(self, variant_id: str) -> None:
        ...

    def scan(self) -> Iterator[dict]:
        """Iterate over every stored record."""
        ...


def record_version(record: Optional[dict]) -> int:
    """Version stamp of a raw record; 0 when absent or unreadable."""
    if record is None:
        return 0
    version = record.get(FIELD_VERSION, 0)
    return version if isinstance(version, int) else 0


def save_state(store: VariantStore, state: VariantColorState, expected_version: int) -> VariantColorState:
    """
    Persist ``state`` over the record last seen at ``expected_version``.

    Returns the state as stored, stamped with the next version.

    Raises:
        StaleWrite: on version conflict
        PersistenceFailed: for any other store error
    """
    stored = replace(state, version=expected_version + 1)
    try:
        store.save(stored.to_record(), expected_version=expected_version)
    except StaleWrite:
        logger.bind(variant_id=state.variant_id).warning(
            "Stale write rejected at version {}", expected_version,
        )
        raise
    except Exception as exc:
        logger.bind(variant_id=state.variant_id).error("Store write failed: {}", exc)
        raise PersistenceFailed(state.variant_id, str(exc)) from exc
    return stored


class InMemoryVariantStore:
    """
    Dict-backed VariantStore.

    Records are copied in and out, so callers never share a mutable dict
    with the store. Used for tests and single-process deployments.
    """

    def __init__(self, records: Optional[dict[str, dict]] = None) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, dict] = {
            variant_id: copy.deepcopy(record)
            for variant_id, record in (records or {}).items()
        }

    def load(self, variant_id: str) -> Optional[dict]:
        with self._lock:
            record = self._records.get(variant_id)
            return copy.deepcopy(record) if record is not None else None

    def save(self, record: dict, expected_version: int) -> None:
        variant_id = record[FIELD_VARIANT_ID]
        with self._lock:
            actual = record_version(self._records.get(variant_id))
            if actual != expected_version:
                raise StaleWrite(variant_id, expected_version, actual)
            self._records[variant_id] = copy.deepcopy(record)

    def delete(self, variant_id: str) -> None:
        with self._lock:
            self._records.pop(variant_id, None)

    def scan(self) -> Iterator[dict]:
        with self._lock:
            records = [copy.deepcopy(r) for r in self._records.values()]
        return iter(records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, variant_id: object) -> bool:
        with self._lock:
            return variant_id in self._records
