from datetime import date

import pytest

from service_ledger.constants import AgreementStatus, PaymentFrequency, CollectionBucket
from service_ledger.exceptions import ValidationError, ScheduleLocked, StateConflict, NotFound


def test_totals_are_computed_from_lines(app):
    agreement = app.post_agreement(
        client_id=7,
        agreement_date=date(2024, 1, 1),
        payment_frequency=PaymentFrequency.QUARTERLY,
        systems=10, system_rate=50000,
        laptops=2, laptop_rate=25000,
        networking_rate=10000,
        discount=10000,
    )
    assert agreement.subtotal == 560000
    assert agreement.total_cost == 550000
    assert agreement.status == AgreementStatus.ACTIVE
    assert [inst.amount for inst in agreement.installments] == [137500] * 4

    stored = app.agreement_manager.get_agreement(agreement.id)
    assert stored.total_cost == 550000
    assert sum(inst.amount for inst in stored.installments) == stored.total_cost


def test_discount_larger_than_subtotal_clamps_to_zero(app):
    agreement = app.post_agreement(client_id=1, agreement_date=date(2024, 1, 1),
                                   payment_frequency="full", servers=1, server_rate=1000, discount=5000)
    assert agreement.subtotal == 1000
    assert agreement.total_cost == 0
    assert [inst.amount for inst in agreement.installments] == [0]


def test_invalid_agreement_stores_nothing(app):
    with pytest.raises(ValidationError):
        app.post_agreement(client_id=1, agreement_date=date(2024, 1, 1),
                           payment_frequency="monthly", printers=-1, printer_rate=100)
    with pytest.raises(ValidationError):
        app.post_agreement(client_id=1, agreement_date=date(2024, 1, 1),
                           payment_frequency="monthly", total_cost=500)
    with pytest.raises(ValidationError):
        app.post_agreement(client_id=1, agreement_date=date(2024, 1, 1), payment_frequency="weekly")
    assert app.agreement_manager.list_agreements() == []


def test_repricing_regenerates_schedule(app, make_agreement):
    agreement = make_agreement(total=120000, frequency=PaymentFrequency.MONTHLY)

    updated = app.patch_agreement(agreement.id, {"networking_rate": 100, "payment_frequency": "three_times"})

    assert updated.total_cost == 100
    assert [inst.amount for inst in updated.installments] == [34, 33, 33]
    assert [inst.payment_number for inst in updated.installments] == [1, 2, 3]
    assert len(app.get_installments(agreement_id=agreement.id)) == 3


def test_schedule_locked_once_an_installment_is_paid(app, make_agreement):
    agreement = make_agreement(total=120000)
    first = agreement.installments[0]
    app.record_payment(first.id, 10000, "cash", date(2024, 1, 15))

    with pytest.raises(ScheduleLocked):
        app.patch_agreement(agreement.id, {"discount": 1000})

    installments = app.get_installments(agreement_id=agreement.id)
    assert len(installments) == 12
    assert sum(inst.amount for inst in installments) == 120000
    assert app.agreement_manager.get_agreement(agreement.id).total_cost == 120000

    # details outside the schedule stay editable
    updated = app.patch_agreement(agreement.id, {"payment_details": "Cheques from HDFC"})
    assert updated.payment_details == "Cheques from HDFC"


def test_patch_rejects_derived_fields(app, make_agreement):
    agreement = make_agreement()
    with pytest.raises(ValidationError):
        app.patch_agreement(agreement.id, {"total_cost": 1})
    with pytest.raises(NotFound):
        app.patch_agreement(9999, {"discount": 1})


def test_cancelled_agreement_leaves_buckets(app, make_agreement):
    agreement = make_agreement(total=1000, agreement_date=date(2024, 6, 5), frequency="full")
    today = date(2024, 6, 10)
    assert len(app.get_installments(bucket=CollectionBucket.OVERDUE, today=today)) == 1

    cancelled = app.agreement_manager.cancel_agreement(agreement.id)

    assert cancelled.status == AgreementStatus.CANCELLED
    assert app.get_installments(bucket=CollectionBucket.OVERDUE, today=today) == []
    with pytest.raises(StateConflict):
        app.agreement_manager.cancel_agreement(agreement.id)
    with pytest.raises(StateConflict):
        app.patch_agreement(agreement.id, {"discount": 1})


def test_preview_schedule_stores_nothing(app):
    preview = app.agreement_manager.preview_schedule(12000000, date(2024, 1, 15), "monthly")
    assert preview["split"] == "₹10,000.00 × 12 payments"
    assert len(preview["payments"]) == 12
    assert app.agreement_manager.list_agreements() == []


def test_renewal_reminders(app, make_agreement):
    agreement = make_agreement(agreement_date=date(2024, 1, 31))
    reminders = app.agreement_manager.renewal_reminders(date(2025, 1, 1))
    assert reminders[0]["agreement_id"] == agreement.id
    assert reminders[0]["next_renewal"] == date(2025, 1, 31)
    assert reminders[0]["days_until_renewal"] == 30


def test_list_agreements_by_client(app, make_agreement):
    make_agreement(client_id=1)
    make_agreement(client_id=2)
    assert [a.client_id for a in app.agreement_manager.list_agreements(client_id=2)] == [2]
    assert len(app.agreement_manager.list_agreements(status=AgreementStatus.ACTIVE)) == 2
