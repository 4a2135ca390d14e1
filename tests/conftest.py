from datetime import date

import pytest

from service_ledger.main_app import LedgerApp
from service_ledger.constants import PaymentFrequency


@pytest.fixture
def app(tmp_path):
    """A LedgerApp on a fresh SQLite file; the current actor is 'tester'."""
    return LedgerApp(str(tmp_path / "ledger.db"), actor_provider=lambda: "tester")


@pytest.fixture
def make_agreement(app):
    """Creates an agreement whose total is `total` minor units (one networking line)."""
    def _make(total=120000, agreement_date=date(2024, 1, 15), frequency=PaymentFrequency.MONTHLY,
              client_id=1, **extra):
        return app.post_agreement(
            client_id=client_id,
            agreement_date=agreement_date,
            payment_frequency=frequency,
            networking_rate=total,
            **extra,
        )
    return _make
