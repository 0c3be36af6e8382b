"""In-memory remittance ledger with per-period serialisation.

Remittances are partitioned by ``(TaxPeriod, TaxType)``. Every mutation on a
partition runs under that partition's lock, so two edits to the same period
cannot interleave while different periods proceed in parallel. Edits carry the
version the caller last read; a stale version is reported as a conflict rather
than merged.

The pending balance is never recalculated implicitly. Callers invoke
:meth:`RemittanceLedger.recompute` after mutating remittances or after the
period's tax summary changes; :meth:`RemittanceLedger.position` only returns
the last computed snapshot.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any

from naijatax.backend.app.models import (
    ZERO,
    LedgerPosition,
    Remittance,
    RemittanceState,
    TaxPeriod,
    TaxType,
    require_non_negative,
    tax_type_of,
)
from naijatax.backend.errors import ErrorKind, LedgerConflictError, LedgerError

from .calculators import round_currency

logger = logging.getLogger(__name__)

PartitionKey = tuple[TaxPeriod, TaxType]

EDITABLE_FIELDS = frozenset({"amount", "paid_on", "reference", "receipt"})


class RemittanceLedger:
    """Thread-safe store of remittances and their computed positions."""

    def __init__(self, id_factory: Callable[[], str] | None = None) -> None:
        self._guard = threading.Lock()
        self._locks: dict[PartitionKey, threading.Lock] = {}
        self._entries: dict[PartitionKey, dict[str, Remittance]] = {}
        self._index: dict[str, PartitionKey] = {}
        self._positions: dict[PartitionKey, LedgerPosition] = {}
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

    def _partition_lock(
        self, key: PartitionKey, *, create: bool = False
    ) -> threading.Lock | None:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None and create:
                lock = threading.Lock()
                self._locks[key] = lock
                self._entries[key] = {}
            return lock

    @contextmanager
    def _partition(self, key: PartitionKey) -> Iterator[dict[str, Remittance]]:
        """Hold the partition's lock and yield its entries; unknown keys are empty."""

        lock = self._partition_lock(key)
        if lock is None:
            yield {}
            return
        with lock:
            yield self._entries[key]

    def _partition_of(self, remittance_id: str) -> PartitionKey:
        with self._guard:
            key = self._index.get(remittance_id)
        if key is None:
            raise LedgerError(
                ErrorKind.NOT_FOUND,
                f"Remittance {remittance_id} not found",
                details={"remittance_id": remittance_id},
            )
        return key

    @staticmethod
    def _current(entries: Mapping[str, Remittance], remittance_id: str) -> Remittance:
        entry = entries.get(remittance_id)
        if entry is None:
            raise LedgerError(
                ErrorKind.NOT_FOUND,
                f"Remittance {remittance_id} not found",
                details={"remittance_id": remittance_id},
            )
        return entry

    @staticmethod
    def _check_version(entry: Remittance, expected_version: int) -> None:
        if entry.version != expected_version:
            raise LedgerConflictError(
                entry.remittance_id,
                expected_version=expected_version,
                actual_version=entry.version,
            )

    def record(
        self,
        period: TaxPeriod,
        tax_type: TaxType | str,
        *,
        paid_on: date,
        amount: Decimal | float | int,
        reference: str,
        receipt: str | None = None,
    ) -> Remittance:
        """Record a new remittance in the ``recorded`` state."""

        entry = Remittance(
            remittance_id=self._id_factory(),
            period=period,
            tax_type=tax_type,
            paid_on=paid_on,
            amount=amount,
            reference=reference,
            receipt=receipt,
        )
        key = (period, entry.tax_type)
        with self._partition_lock(key, create=True):
            self._entries[key][entry.remittance_id] = entry
            with self._guard:
                self._index[entry.remittance_id] = key

        logger.info(
            "Recorded remittance %s of %s for %s/%s",
            entry.remittance_id,
            entry.amount,
            period.label,
            entry.tax_type.value,
        )
        return entry

    def get(self, remittance_id: str) -> Remittance:
        key = self._partition_of(remittance_id)
        with self._partition(key) as entries:
            return self._current(entries, remittance_id)

    def remittances(self, period: TaxPeriod, tax_type: TaxType | str) -> tuple[Remittance, ...]:
        """Return the period's remittances ordered by payment date."""

        key = (period, tax_type_of(tax_type))
        with self._partition(key) as partition:
            entries = list(partition.values())
        return tuple(sorted(entries, key=lambda item: (item.paid_on, item.remittance_id)))

    def edit(
        self,
        remittance_id: str,
        *,
        expected_version: int,
        changes: Mapping[str, Any],
    ) -> Remittance:
        """Replace amount, date, reference or receipt of a recorded remittance."""

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise LedgerError(
                ErrorKind.INVALID_VALUE,
                "Only amount, paid_on, reference and receipt can be edited",
                details={"fields": sorted(unknown)},
            )

        key = self._partition_of(remittance_id)
        with self._partition(key) as entries:
            entry = self._current(entries, remittance_id)
            self._check_version(entry, expected_version)
            if entry.state is RemittanceState.VERIFIED:
                raise LedgerError(
                    ErrorKind.INVALID_TRANSITION,
                    f"Remittance {remittance_id} is verified and can no longer be edited",
                    details={"remittance_id": remittance_id, "state": entry.state.value},
                )
            updated = entry.revised(**changes)
            entries[remittance_id] = updated

        logger.info(
            "Edited remittance %s (version %d)", remittance_id, updated.version
        )
        return updated

    def verify(self, remittance_id: str, *, expected_version: int | None = None) -> Remittance:
        """Move a remittance from ``recorded`` to the terminal ``verified`` state."""

        key = self._partition_of(remittance_id)
        with self._partition(key) as entries:
            entry = self._current(entries, remittance_id)
            if expected_version is not None:
                self._check_version(entry, expected_version)
            if entry.state is RemittanceState.VERIFIED:
                raise LedgerError(
                    ErrorKind.INVALID_TRANSITION,
                    f"Remittance {remittance_id} is already verified",
                    details={"remittance_id": remittance_id, "state": entry.state.value},
                )
            updated = entry.revised(state=RemittanceState.VERIFIED)
            entries[remittance_id] = updated

        logger.info("Verified remittance %s", remittance_id)
        return updated

    def delete(self, remittance_id: str, *, confirmed: bool = False) -> Remittance:
        """Delete a remittance once the caller has obtained explicit consent."""

        if confirmed is not True:
            raise LedgerError(
                ErrorKind.CONFIRMATION_REQUIRED,
                "Deleting a remittance requires explicit confirmation",
                details={"remittance_id": remittance_id},
            )

        key = self._partition_of(remittance_id)
        with self._partition(key) as entries:
            entry = self._current(entries, remittance_id)
            del entries[remittance_id]
            with self._guard:
                self._index.pop(remittance_id, None)

        logger.info("Deleted remittance %s (%s)", remittance_id, entry.state.value)
        return entry

    def remitted_total(self, period: TaxPeriod, tax_type: TaxType | str) -> Decimal:
        key = (period, tax_type_of(tax_type))
        with self._partition(key) as entries:
            return sum((entry.amount for entry in entries.values()), ZERO)

    def recompute(
        self,
        period: TaxPeriod,
        tax_type: TaxType | str,
        tax_after_credits: Decimal | float | int,
    ) -> LedgerPosition:
        """Compute and cache the pending balance for ``period``.

        The pending balance is not floored: a negative value is an overpayment.
        ``remitted + pending == tax_after_credits`` holds exactly.
        """

        kind = tax_type_of(tax_type)
        due = round_currency(require_non_negative("tax_after_credits", tax_after_credits))
        key = (period, kind)
        with self._partition(key) as partition:
            entries = list(partition.values())
            remitted = sum((entry.amount for entry in entries), ZERO)
            position = LedgerPosition(
                period=period,
                tax_type=kind,
                tax_after_credits=due,
                remitted=remitted,
                pending=due - remitted,
                remittance_count=len(entries),
            )
            with self._guard:
                self._positions[key] = position

        if position.overpaid:
            logger.warning(
                "Remittances for %s/%s exceed the tax due by %s",
                period.label,
                kind.value,
                -position.pending,
            )
        return position

    def position(self, period: TaxPeriod, tax_type: TaxType | str) -> LedgerPosition | None:
        """Return the last computed position without recalculating it."""

        key = (period, tax_type_of(tax_type))
        with self._guard:
            return self._positions.get(key)


__all__ = ["EDITABLE_FIELDS", "RemittanceLedger"]
