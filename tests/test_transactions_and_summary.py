from datetime import date

import pytest

from service_ledger.main_app import LedgerApp
from service_ledger.constants import TransactionStatus, TransactionType, DateRangePreset
from service_ledger.exceptions import (
    CategoryTypeMismatch, AlreadyFinalized, ValidationError, NotFound
)


def _entry(type_, category_name, amount, day=date(2024, 5, 10), **extra):
    data = {"transaction_date": day, "type": type_, "category_name": category_name, "amount": amount}
    data.update(extra)
    return data


def _approved(app, *args, **kwargs):
    created = app.post_transaction(_entry(*args, **kwargs))
    return app.approve_transaction(created.id)


# --------------------------------------------------------------------
# LEDGER
# --------------------------------------------------------------------
def test_new_transaction_is_always_pending(app):
    created = app.post_transaction(_entry("income", "Service Charges", 5000, status="approved", approved_by="mallory"))
    assert created.status == TransactionStatus.PENDING
    assert created.approved_by is None
    assert created.created_by == "tester"


def test_category_type_mismatch_stores_nothing(app):
    with pytest.raises(CategoryTypeMismatch):
        app.post_transaction(_entry("income", "Salary", 5000))
    assert app.transaction_manager.list_transactions(date(2024, 1, 1), date(2024, 12, 31)) == []


@pytest.mark.parametrize("amount", [0, -5, 10.5])
def test_amount_must_be_positive_integer(app, amount):
    with pytest.raises(ValidationError):
        app.post_transaction(_entry("expense", "Travel", amount))


def test_unknown_category_and_fields(app):
    with pytest.raises(NotFound):
        app.post_transaction(_entry("expense", "Yachts", 100))
    with pytest.raises(ValidationError):
        app.post_transaction(_entry("expense", "Travel", 100, colour="red"))
    with pytest.raises(ValidationError):
        app.post_transaction(_entry("expense", "Travel", 100, reference_type="installment"))


def test_actor_is_required(tmp_path):
    anonymous = LedgerApp(str(tmp_path / "anon.db"))
    with pytest.raises(ValidationError):
        anonymous.post_transaction(_entry("expense", "Travel", 100))


def test_approve_then_finalized(app):
    created = app.post_transaction(_entry("expense", "Travel", 1200))

    approved = app.approve_transaction(created.id, actor="manager")

    assert approved.status == TransactionStatus.APPROVED
    assert approved.approved_by == "manager"
    with pytest.raises(AlreadyFinalized):
        app.approve_transaction(created.id)
    with pytest.raises(AlreadyFinalized):
        app.reject_transaction(created.id)
    with pytest.raises(AlreadyFinalized):
        app.patch_transaction(created.id, {"amount": 1})


def test_reject_is_final(app):
    created = app.post_transaction(_entry("expense", "Travel", 1200))
    rejected = app.reject_transaction(created.id)
    assert rejected.status == TransactionStatus.REJECTED
    assert rejected.approved_by is None
    with pytest.raises(AlreadyFinalized):
        app.approve_transaction(created.id)


def test_patch_pending_transaction(app):
    created = app.post_transaction(_entry("expense", "Travel", 1200))

    updated = app.patch_transaction(created.id, {"amount": 1500, "description": "Site visit"})

    assert updated.amount == 1500
    assert app.transaction_manager.get_transaction(created.id).description == "Site visit"
    with pytest.raises(ValidationError):
        app.patch_transaction(created.id, {"status": "approved"})
    with pytest.raises(CategoryTypeMismatch):
        app.patch_transaction(created.id, {"type": "income"})
    assert app.transaction_manager.get_transaction(created.id).type == TransactionType.EXPENSE


def test_delete_removes_approved_entry_from_summary(app):
    approved = _approved(app, "income", "Service Charges", 5000)
    assert app.get_summary(5, 2024).total_income == 5000

    assert app.delete_transaction(approved.id) is True

    assert app.get_summary(5, 2024).total_income == 0
    with pytest.raises(NotFound):
        app.delete_transaction(approved.id)


def test_list_transactions_filters(app):
    app.post_transaction(_entry("expense", "Travel", 100, description="Taxi to Pune office"))
    app.post_transaction(_entry("expense", "Spare Parts", 900, vendor_customer="Lamington Road Traders"))
    app.post_transaction(_entry("income", "Service Charges", 400))

    start, end = date(2024, 5, 1), date(2024, 5, 31)
    manager = app.transaction_manager
    assert len(manager.list_transactions(start, end)) == 3
    assert len(manager.list_transactions(start, end, transaction_type="expense")) == 2
    assert [t.amount for t in manager.list_transactions(start, end, category_name="Spare Parts")] == [900]
    assert [t.amount for t in manager.list_transactions(start, end, search="lamington")] == [900]
    assert [t.amount for t in manager.list_transactions(start, end, search="PUNE")] == [100]
    assert manager.list_transactions(start, end, status="approved") == []


# --------------------------------------------------------------------
# SUMMARY
# --------------------------------------------------------------------
def test_monthly_summary(app):
    _approved(app, "income", "Service Charges", 5000)
    _approved(app, "expense", "Salary", 2000)
    _approved(app, "expense", "Advance", 500)
    app.post_transaction(_entry("income", "Service Charges", 9999))

    summary = app.get_summary(5, 2024)

    assert summary.total_income == 5000
    assert summary.total_expenses == 2500
    assert summary.net_profit == 2500
    assert summary.salary_expenses == 2000
    assert summary.advance_expenses == 500
    assert summary.transaction_count == 3


def test_empty_month_is_all_zeros(app):
    summary = app.get_summary(2, 2024)
    assert summary.as_dict() == {
        "period_start": "2024-02-01",
        "period_end": "2024-02-29",
        "currency": "INR",
        "total_income": 0,
        "total_expenses": 0,
        "net_profit": 0,
        "salary_expenses": 0,
        "advance_expenses": 0,
        "transaction_count": 0,
    }


def test_summary_month_boundaries(app):
    _approved(app, "expense", "Travel", 300, day=date(2024, 4, 30))
    _approved(app, "expense", "Travel", 700, day=date(2024, 5, 1))
    _approved(app, "expense", "Travel", 900, day=date(2024, 5, 31))
    _approved(app, "expense", "Travel", 50, day=date(2024, 6, 1))

    assert app.get_summary(5, 2024).total_expenses == 1600
    assert app.get_summary(4, 2024).total_expenses == 300


def test_net_profit_can_be_negative(app):
    _approved(app, "income", "Service Charges", 100)
    _approved(app, "expense", "Spare Parts", 400)
    assert app.get_summary(5, 2024).net_profit == -300


def test_other_currency_is_left_out(app):
    _approved(app, "income", "Service Charges", 100, currency="USD")
    assert app.get_summary(5, 2024).total_income == 0


def test_summary_rejects_bad_month(app):
    with pytest.raises(ValidationError):
        app.get_summary(13, 2024)


def test_summary_preset(app):
    _approved(app, "income", "Service Charges", 100, day=date(2024, 3, 2))
    _approved(app, "income", "Service Charges", 200, day=date(2024, 5, 2))
    summary = app.summary_manager.summarize_preset(DateRangePreset.LAST_3_MONTHS, date(2024, 5, 20))
    assert summary.total_income == 300
    assert summary.period_start == date(2024, 3, 1)


def test_dashboard(app, make_agreement):
    make_agreement(total=1000, agreement_date=date(2024, 5, 1), frequency="full")
    _approved(app, "income", "Service Charges", 5000)
    dashboard = app.dashboard(date(2024, 5, 20))
    assert dashboard["summary"]["total_income"] == 5000
    assert dashboard["collections"]["overdue"]["amount"] == 1000
    assert dashboard["renewals"] == []
