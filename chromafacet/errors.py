# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Error taxonomy for the classification engine.

Every error derives from ChromafacetError and, where one fits, from the
builtin a caller would naturally catch (ValueError, LookupError).

Propagation:
- InvalidColorFormat / UnknownFamily / UnknownVariant: rejected at the API
  boundary, variant state unchanged.
- PersistenceFailed (and StaleWrite): surfaced to the caller for retry of the
  whole transition. Nothing is retried here.
- CatalogMismatch: only produced during rebuild, collected in the report.
"""

from __future__ import annotations

from typing import Optional


class ChromafacetError(Exception):
    """Base class for all engine errors."""


class InvalidColorFormat(ChromafacetError, ValueError):
    """A color value is not a well-formed #RRGGBB (or #RGB) hex string."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid color format: {value!r} (expected #RRGGBB)")


class UnknownFamily(ChromafacetError, LookupError):
    """A family id is not part of the active catalog."""

    def __init__(self, family_id: object, catalog_version: Optional[str] = None) -> None:
        self.family_id = family_id
        self.catalog_version = catalog_version
        suffix = f" (catalog {catalog_version})" if catalog_version else ""
        super().__init__(f"Unknown color family: {family_id!r}{suffix}")


class UnknownVariant(ChromafacetError, LookupError):
    """No color record exists for the variant."""

    def __init__(self, variant_id: str) -> None:
        self.variant_id = variant_id
        super().__init__(f"No color state for variant {variant_id!r}")


class CorruptRecord(ChromafacetError, ValueError):
    """A stored variant record cannot be parsed."""

    def __init__(self, variant_id: Optional[str], reason: str) -> None:
        self.variant_id = variant_id
        self.reason = reason
        super().__init__(f"Corrupt color record for variant {variant_id!r}: {reason}")


class PersistenceFailed(ChromafacetError):
    """The variant store rejected or failed a write."""

    def __init__(self, variant_id: str, reason: str) -> None:
        self.variant_id = variant_id
        self.reason = reason
        super().__init__(f"Failed to persist color state for {variant_id!r}: {reason}")


class StaleWrite(PersistenceFailed):
    """Compare-and-swap lost: the record changed since it was read."""

    def __init__(self, variant_id: str, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            variant_id,
            f"version conflict (expected {expected}, found {actual})",
        )


class CatalogMismatch(ChromafacetError):
    """A stored pin references a family missing from the current catalog."""

    def __init__(self, variant_id: str, family_id: str, catalog_version: str) -> None:
        self.variant_id = variant_id
        self.family_id = family_id
        self.catalog_version = catalog_version
        super().__init__(
            f"Variant {variant_id!r} is pinned to {family_id!r}, "
            f"which catalog {catalog_version} does not define"
        )


class CatalogError(ChromafacetError, ValueError):
    """A family catalog definition is invalid."""
