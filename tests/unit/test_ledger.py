"""Unit tests for the remittance ledger."""

from __future__ import annotations

import logging
import threading
from datetime import date
from decimal import Decimal
from itertools import count

import pytest

from naijatax.backend.app.models import RemittanceState, TaxPeriod, TaxType
from naijatax.backend.app.services.ledger import RemittanceLedger
from naijatax.backend.errors import (
    ErrorKind,
    InputValidationError,
    LedgerConflictError,
    LedgerError,
)

PERIOD = TaxPeriod(account_id="acct-1", year=2026)


@pytest.fixture()
def ledger() -> RemittanceLedger:
    sequence = count(1)
    return RemittanceLedger(id_factory=lambda: f"rem-{next(sequence)}")


def _record(ledger: RemittanceLedger, amount, paid_on=date(2027, 2, 1), reference="NRS-1"):
    return ledger.record(PERIOD, TaxType.PIT, paid_on=paid_on, amount=amount, reference=reference)


def test_two_remittances_settle_the_liability_exactly(ledger: RemittanceLedger) -> None:
    _record(ledger, Decimal("300000"))
    _record(ledger, Decimal("310250"), reference="NRS-2")

    position = ledger.recompute(PERIOD, TaxType.PIT, Decimal("610250"))

    assert position.remitted == Decimal("610250")
    assert position.pending == Decimal("0")
    assert position.remitted + position.pending == position.tax_after_credits
    assert position.remittance_count == 2


def test_new_entries_start_recorded_at_version_one(ledger: RemittanceLedger) -> None:
    entry = _record(ledger, 1_000)

    assert entry.remittance_id == "rem-1"
    assert entry.state is RemittanceState.RECORDED
    assert entry.version == 1
    assert ledger.get("rem-1") == entry


def test_remittances_are_ordered_by_payment_date(ledger: RemittanceLedger) -> None:
    _record(ledger, 100, paid_on=date(2027, 3, 1))
    _record(ledger, 200, paid_on=date(2027, 1, 1))

    dates = [item.paid_on for item in ledger.remittances(PERIOD, "pit")]

    assert dates == [date(2027, 1, 1), date(2027, 3, 1)]
    assert ledger.remittances(PERIOD, TaxType.CIT) == ()


def test_position_is_only_updated_by_recompute(ledger: RemittanceLedger) -> None:
    assert ledger.position(PERIOD, TaxType.PIT) is None

    _record(ledger, 100)
    ledger.recompute(PERIOD, TaxType.PIT, 1_000)
    _record(ledger, 200)

    assert ledger.position(PERIOD, TaxType.PIT).remitted == Decimal("100")
    assert ledger.remitted_total(PERIOD, TaxType.PIT) == Decimal("300")


def test_edit_requires_the_current_version(ledger: RemittanceLedger) -> None:
    entry = _record(ledger, 1_000)

    updated = ledger.edit(
        entry.remittance_id, expected_version=1, changes={"amount": Decimal("1500")}
    )
    assert updated.version == 2
    assert updated.amount == Decimal("1500")

    with pytest.raises(LedgerConflictError) as exc_info:
        ledger.edit(entry.remittance_id, expected_version=1, changes={"reference": "NRS-9"})
    assert exc_info.value.kind is ErrorKind.CONFLICT
    assert exc_info.value.details["actual_version"] == 2


def test_edit_rejects_unknown_fields(ledger: RemittanceLedger) -> None:
    entry = _record(ledger, 1_000)

    with pytest.raises(LedgerError) as exc_info:
        ledger.edit(entry.remittance_id, expected_version=1, changes={"state": "verified"})

    assert exc_info.value.kind is ErrorKind.INVALID_VALUE


def test_verified_remittances_are_immutable(ledger: RemittanceLedger) -> None:
    entry = _record(ledger, 1_000)

    verified = ledger.verify(entry.remittance_id, expected_version=1)
    assert verified.state is RemittanceState.VERIFIED

    with pytest.raises(LedgerError) as edit_error:
        ledger.edit(entry.remittance_id, expected_version=2, changes={"amount": 5})
    assert edit_error.value.kind is ErrorKind.INVALID_TRANSITION

    with pytest.raises(LedgerError) as verify_error:
        ledger.verify(entry.remittance_id)
    assert verify_error.value.kind is ErrorKind.INVALID_TRANSITION


def test_delete_requires_confirmation(ledger: RemittanceLedger) -> None:
    entry = _record(ledger, 1_000)

    with pytest.raises(LedgerError) as exc_info:
        ledger.delete(entry.remittance_id)
    assert exc_info.value.kind is ErrorKind.CONFIRMATION_REQUIRED
    assert ledger.get(entry.remittance_id) == entry

    ledger.delete(entry.remittance_id, confirmed=True)

    with pytest.raises(LedgerError) as missing:
        ledger.get(entry.remittance_id)
    assert missing.value.kind is ErrorKind.NOT_FOUND


def test_overpayment_is_kept_negative_and_logged(
    ledger: RemittanceLedger, caplog: pytest.LogCaptureFixture
) -> None:
    _record(ledger, 700_000)

    with caplog.at_level(logging.WARNING):
        position = ledger.recompute(PERIOD, TaxType.PIT, 610_250)

    assert position.pending == Decimal("-89750.00")
    assert position.overpaid is True
    assert "exceed the tax due" in caplog.text


@pytest.mark.parametrize(
    ("amount", "reference", "kind"),
    [
        (0, "NRS-1", ErrorKind.INVALID_VALUE),
        (-10, "NRS-1", ErrorKind.NEGATIVE_AMOUNT),
        (10, "  ", ErrorKind.INVALID_VALUE),
    ],
)
def test_invalid_remittances_are_rejected(
    ledger: RemittanceLedger, amount: int, reference: str, kind: ErrorKind
) -> None:
    with pytest.raises(InputValidationError) as exc_info:
        _record(ledger, amount, reference=reference)

    assert exc_info.value.kind is kind


def test_concurrent_records_are_all_counted(ledger: RemittanceLedger) -> None:
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        for _ in range(50):
            _record(ledger, 1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    position = ledger.recompute(PERIOD, TaxType.PIT, 1_000)
    assert position.remitted == Decimal("400")
    assert position.remittance_count == 400


def test_concurrent_edits_on_one_version_admit_a_single_winner(
    ledger: RemittanceLedger,
) -> None:
    entry = _record(ledger, 1_000)
    barrier = threading.Barrier(6)
    outcomes: list[str] = []
    outcomes_lock = threading.Lock()

    def worker(amount: int) -> None:
        barrier.wait()
        try:
            ledger.edit(entry.remittance_id, expected_version=1, changes={"amount": amount})
            result = "ok"
        except LedgerConflictError:
            result = "conflict"
        with outcomes_lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker, args=(2_000 + i,)) for i in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == 5
    assert ledger.get(entry.remittance_id).version == 2


def test_edited_references_are_trimmed_like_new_ones(ledger: RemittanceLedger) -> None:
    entry = _record(ledger, 1_000, reference="  NRS-1  ")
    assert entry.reference == "NRS-1"

    updated = ledger.edit(
        entry.remittance_id, expected_version=1, changes={"reference": "  NEW-REF  "}
    )

    assert updated.reference == "NEW-REF"
    assert ledger.get(entry.remittance_id).reference == "NEW-REF"


def test_edits_are_validated_like_new_remittances(ledger: RemittanceLedger) -> None:
    entry = _record(ledger, 1_000)

    with pytest.raises(InputValidationError) as exc_info:
        ledger.edit(entry.remittance_id, expected_version=1, changes={"amount": -5})

    assert exc_info.value.kind is ErrorKind.NEGATIVE_AMOUNT
    assert ledger.get(entry.remittance_id).version == 1


def test_queries_on_unknown_periods_leave_the_ledger_empty(ledger: RemittanceLedger) -> None:
    other = TaxPeriod(account_id="acct-2", year=2027, month=4)

    assert ledger.remittances(other, TaxType.VAT) == ()
    assert ledger.remitted_total(other, TaxType.VAT) == Decimal("0")
    position = ledger.recompute(other, TaxType.VAT, 500)

    assert position.pending == Decimal("500.00")
    assert position.remittance_count == 0
    assert ledger._locks == {}
    assert ledger._entries == {}
