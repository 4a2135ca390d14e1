# service_ledger/main_app.py
import logging
import logging.config
from datetime import date
from typing import Any, Callable, Dict, List, Optional

# --- Configuration and Constants ---
from service_ledger.config import DATABASE_PATH, LOGGING_CONFIG, ensure_directories
from service_ledger.constants import DateRangePreset
from service_ledger.utils.periods import month_bounds

# --- Data Access Layer (DAL) ---
from service_ledger.data_access.database_manager import DatabaseManager
from service_ledger.data_access.agreements_repository import AgreementsRepository
from service_ledger.data_access.payment_schedules_repository import PaymentSchedulesRepository
from service_ledger.data_access.payment_records_repository import PaymentRecordsRepository
from service_ledger.data_access.account_categories_repository import AccountCategoriesRepository
from service_ledger.data_access.account_transactions_repository import AccountTransactionsRepository

# --- Business Logic Layer (BLL) ---
from service_ledger.business_logic.entities.account_transaction_entity import AccountTransactionEntity
from service_ledger.business_logic.account_category_manager import AccountCategoryManager
from service_ledger.business_logic.account_transaction_manager import AccountTransactionManager
from service_ledger.business_logic.financial_summary_manager import FinancialSummaryManager
from service_ledger.business_logic.collections_manager import CollectionsManager
from service_ledger.business_logic.agreement_manager import AgreementManager
from service_ledger.exceptions import ValidationError, NotFound

logger = logging.getLogger(__name__)


class LedgerApp:
    """
    Composition root: builds the store, repositories and managers, and exposes
    the operations callers (UI, reporting) use. Amounts are integer minor units.
    `actor_provider` resolves the current user id when a call doesn't pass one.
    """

    def __init__(self, db_path: str = DATABASE_PATH, actor_provider: Optional[Callable[[], str]] = None):
        logger.info("Initializing Database Manager and creating tables...")
        self.db_manager = DatabaseManager(db_path)
        self.db_manager.create_tables()
        self.actor_provider = actor_provider

        logger.info("Initializing Repositories...")
        self.agreements_repo = AgreementsRepository(self.db_manager)
        self.schedules_repo = PaymentSchedulesRepository(self.db_manager)
        self.payment_records_repo = PaymentRecordsRepository(self.db_manager)
        self.categories_repo = AccountCategoriesRepository(self.db_manager)
        self.transactions_repo = AccountTransactionsRepository(self.db_manager)

        logger.info("Initializing Managers...")
        self.category_manager = AccountCategoryManager(self.categories_repo)
        self.transaction_manager = AccountTransactionManager(self.transactions_repo, self.category_manager)
        self.summary_manager = FinancialSummaryManager(self.transactions_repo, self.category_manager)
        self.agreement_manager = AgreementManager(self.agreements_repo, self.schedules_repo)
        self.collections_manager = CollectionsManager(
            schedules_repository=self.schedules_repo,
            payment_records_repository=self.payment_records_repo,
            agreements_repository=self.agreements_repo,
            transaction_manager=self.transaction_manager,
        )
        logger.info("LedgerApp initialized.")

    def _actor(self, actor: Optional[str]) -> str:
        if actor:
            return actor
        if self.actor_provider is not None:
            return self.actor_provider()
        raise ValidationError("No actor given and no identity provider configured.")

    # --- agreements -------------------------------------------------------------

    def post_agreement(self, **data):
        return self.agreement_manager.create_agreement(**data)

    def patch_agreement(self, agreement_id: int, patch: Dict[str, Any]):
        return self.agreement_manager.update_agreement(agreement_id, patch)

    # --- installments -------------------------------------------------------------

    def get_installments(self, agreement_id: Optional[int] = None, bucket: Optional[str] = None,
                         today: Optional[date] = None):
        return self.collections_manager.get_installments(agreement_id=agreement_id, bucket=bucket, today=today)

    def record_payment(self, installment_id: int, amount_paid: int, payment_method: str, payment_date: date,
                     reference_number: Optional[str] = None, notes: Optional[str] = None,
                     mirror_to_ledger: bool = False, actor: Optional[str] = None):
        return self.collections_manager.record_payment(
            installment_id, amount_paid, payment_method, payment_date,
            reference_number=reference_number, notes=notes,
            mirror_to_ledger=mirror_to_ledger,
            actor=self._actor(actor) if mirror_to_ledger else actor,
        )

    def mark_reminder_sent(self, installment_id: int):
        return self.collections_manager.mark_reminder_sent(installment_id)

    # --- ledger ---------------------------------------------------------------------

    def post_category(self, name: str, category_type: str, description: Optional[str] = None):
        return self.category_manager.create_category(name, category_type, description)

    def get_categories(self, active_only: bool = True, category_type: Optional[str] = None):
        return self.category_manager.list_categories(active_only=active_only, category_type=category_type)

    def deactivate_category(self, category_id: int):
        return self.category_manager.deactivate_category(category_id)

    def post_transaction(self, data: Dict[str, Any], actor: Optional[str] = None) -> AccountTransactionEntity:
        data = dict(data)
        category_name = data.pop("category_name", None)
        if category_name is not None:
            category = self.category_manager.get_category_by_name(category_name)
            if category is None:
                raise NotFound(f"Account category '{category_name}' not found.", entity="account_category")
            data["category_id"] = category.id
        actor = self._actor(actor)
        data.setdefault("created_by", actor)
        try:
            transaction = AccountTransactionEntity(**data)
        except TypeError as e:
            raise ValidationError(f"Invalid transaction fields: {e}", entity="account_transaction")
        return self.transaction_manager.create_transaction(transaction, actor)

    def patch_transaction(self, transaction_id: int, patch: Dict[str, Any]):
        return self.transaction_manager.update_transaction(transaction_id, patch)

    def delete_transaction(self, transaction_id: int) -> bool:
        return self.transaction_manager.delete_transaction(transaction_id)

    def approve_transaction(self, transaction_id: int, actor: Optional[str] = None):
        return self.transaction_manager.approve_transaction(transaction_id, self._actor(actor))

    def reject_transaction(self, transaction_id: int, actor: Optional[str] = None):
        return self.transaction_manager.reject_transaction(transaction_id, self._actor(actor))

    # --- reporting --------------------------------------------------------------------

    def get_summary(self, month: int, year: int):
        return self.summary_manager.summarize(month, year)

    def dashboard(self, today: date) -> Dict[str, Any]:
        """Figures for the back-office landing page."""
        return {
            "summary": self.summary_manager.summarize_preset(DateRangePreset.CURRENT_MONTH, today).as_dict(),
            "collections": self.collections_manager.collection_stats(today),
            "collected_this_month": sum(
                record.amount_paid
                for record in self.collections_manager.payments_received(*month_bounds(today.month, today.year))),
            "renewals": self._renewals_due(today),
        }

    def _renewals_due(self, today: date) -> List[Dict[str, Any]]:
        return [r for r in self.agreement_manager.renewal_reminders(today) if r["days_until_renewal"] <= 30]


def main():
    ensure_directories()
    logging.config.dictConfig(LOGGING_CONFIG)
    logger.info("Application starting...")

    app = LedgerApp(DATABASE_PATH)
    today = date.today()
    dashboard = app.dashboard(today)
    summary = dashboard["summary"]
    logger.info(f"Month to date: income {summary['total_income']}, expenses {summary['total_expenses']}, "
                f"net {summary['net_profit']} ({summary['currency']} minor units).")
    for bucket, stats in dashboard["collections"].items():
        logger.info(f"{bucket}: {stats['count']} installment(s), {stats['amount']} outstanding.")
    logger.info(f"Collected this month: {dashboard['collected_this_month']}.")
    logger.info(f"{len(dashboard['renewals'])} agreement renewal(s) due within 30 days.")


if __name__ == '__main__':
    main()
