import threading
from datetime import date

from service_ledger.main_app import LedgerApp
from service_ledger.constants import InstallmentStatus
from service_ledger.exceptions import AlreadyPaid, ScheduleLocked, NotFound

WORKERS = 8


def _apps(tmp_path, count):
    """Separate LedgerApp instances on one SQLite file, as separate processes would have."""
    db_path = str(tmp_path / "shared.db")
    return [LedgerApp(db_path, actor_provider=lambda: "clerk") for _ in range(count)]


def _run_together(calls):
    """Starts every call at the same moment and returns their outcomes in call order."""
    barrier = threading.Barrier(len(calls), timeout=10)
    outcomes = [None] * len(calls)

    def worker(index, call):
        barrier.wait()
        try:
            call()
            outcomes[index] = "ok"
        except Exception as e:
            outcomes[index] = type(e).__name__

    threads = [threading.Thread(target=worker, args=(i, call)) for i, call in enumerate(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return outcomes


def test_concurrent_payments_for_one_installment(tmp_path):
    apps = _apps(tmp_path, WORKERS)
    agreement = apps[0].post_agreement(client_id=1, agreement_date=date(2024, 1, 15),
                                       payment_frequency="monthly", networking_rate=120000)
    first = agreement.installments[0]

    outcomes = _run_together([
        lambda app=app: app.record_payment(first.id, 10000, "cash", date(2024, 1, 15))
        for app in apps
    ])

    assert sorted(outcomes) == [AlreadyPaid.__name__] * (WORKERS - 1) + ["ok"]
    assert len(apps[0].collections_manager.get_payment_records(agreement.id)) == 1
    assert apps[0].collections_manager.get_installment(first.id).status == InstallmentStatus.PAID


def test_repricing_racing_a_payment_keeps_schedule_consistent(tmp_path):
    payer, editor = _apps(tmp_path, 2)
    agreement = payer.post_agreement(client_id=1, agreement_date=date(2024, 1, 15),
                                     payment_frequency="monthly", networking_rate=120000)
    first = agreement.installments[0]

    pay_outcome, patch_outcome = _run_together([
        lambda: payer.record_payment(first.id, 10000, "cash", date(2024, 1, 15)),
        lambda: editor.patch_agreement(agreement.id, {"discount": 1200}),
    ])

    # exactly one side wins: either the payment locks the schedule, or the
    # regeneration removes the installment before it is paid
    assert (pay_outcome, patch_outcome) in [
        ("ok", ScheduleLocked.__name__),
        (NotFound.__name__, "ok"),
    ]
    stored = payer.agreement_manager.get_agreement(agreement.id)
    assert len(stored.installments) == 12
    assert sum(inst.amount for inst in stored.installments) == stored.total_cost
    paid = [inst for inst in stored.installments if inst.is_paid]
    assert len(paid) == len(payer.collections_manager.get_payment_records(agreement.id))
    if pay_outcome == "ok":
        assert stored.total_cost == 120000
        assert [inst.id for inst in paid] == [first.id]
    else:
        assert stored.total_cost == 118800
        assert paid == []
