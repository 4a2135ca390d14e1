# service_ledger/business_logic/collections_manager.py

from typing import Optional, List, Dict, Any, Union
from datetime import date, datetime, timedelta
import logging

from service_ledger.business_logic.entities.installment_entity import InstallmentEntity
from service_ledger.business_logic.entities.payment_record_entity import PaymentRecordEntity
from service_ledger.business_logic.account_transaction_manager import AccountTransactionManager
from service_ledger.data_access.payment_schedules_repository import PaymentSchedulesRepository
from service_ledger.data_access.payment_records_repository import PaymentRecordsRepository
from service_ledger.data_access.agreements_repository import AgreementsRepository
from service_ledger.config import UPCOMING_WINDOW_DAYS
from service_ledger.constants import (
    InstallmentStatus, AgreementStatus, PaymentMethod, CollectionBucket, BUCKET_PRIORITY
)
from service_ledger.exceptions import ValidationError, AlreadyPaid, NotFound
from service_ledger.utils.periods import month_bounds, is_in_month, to_date

logger = logging.getLogger(__name__)


# --- Bucket predicates. Only pending installments ever fall into a bucket. ---

def is_due_this_month(installment: InstallmentEntity, today: date) -> bool:
    return not installment.is_paid and is_in_month(installment.due_date, today.month, today.year)

def is_upcoming(installment: InstallmentEntity, today: date, window_days: int = UPCOMING_WINDOW_DAYS) -> bool:
    return not installment.is_paid and 0 <= installment.days_until_due(today) <= window_days

def is_overdue(installment: InstallmentEntity, today: date) -> bool:
    # due today is not overdue yet
    return not installment.is_paid and installment.due_date < today

def classify_installment(installment: InstallmentEntity,
                         today: date,
                         window_days: int = UPCOMING_WINDOW_DAYS) -> Optional[CollectionBucket]:
    """The most urgent bucket the installment falls in (overdue > upcoming > this month), or None."""
    checks = {
        CollectionBucket.OVERDUE: lambda: is_overdue(installment, today),
        CollectionBucket.UPCOMING: lambda: is_upcoming(installment, today, window_days),
        CollectionBucket.THIS_MONTH: lambda: is_due_this_month(installment, today),
    }
    for bucket in BUCKET_PRIORITY:
        if checks[bucket]():
            return bucket
    return None


def parse_bucket(bucket: Union[CollectionBucket, str]) -> CollectionBucket:
    if isinstance(bucket, CollectionBucket):
        return bucket
    try:
        return CollectionBucket(bucket)
    except ValueError:
        raise ValidationError(f"Unknown bucket: {bucket!r}. Expected one of "
                              f"{', '.join(b.value for b in CollectionBucket)}.")


class CollectionsManager:
    def __init__(self,
                 schedules_repository: PaymentSchedulesRepository,
                 payment_records_repository: PaymentRecordsRepository,
                 agreements_repository: AgreementsRepository,
                 transaction_manager: Optional[AccountTransactionManager] = None,
                 upcoming_window_days: int = UPCOMING_WINDOW_DAYS):

        if schedules_repository is None: raise ValueError("schedules_repository cannot be None")
        if payment_records_repository is None: raise ValueError("payment_records_repository cannot be None")
        if agreements_repository is None: raise ValueError("agreements_repository cannot be None")

        self.schedules_repository = schedules_repository
        self.payment_records_repository = payment_records_repository
        self.agreements_repository = agreements_repository
        self.transaction_manager = transaction_manager
        self.upcoming_window_days = upcoming_window_days

    @property
    def db_manager(self):
        return self.schedules_repository.db_manager

    def get_installment(self, installment_id: int, conn=None) -> InstallmentEntity:
        installment = self.schedules_repository.get_by_id(installment_id, conn=conn)
        if installment is None:
            raise NotFound(f"Installment {installment_id} not found.", entity="installment", entity_id=installment_id)
        return installment

    def get_installments_for_agreement(self, agreement_id: int) -> List[InstallmentEntity]:
        if self.agreements_repository.get_by_id(agreement_id) is None:
            raise NotFound(f"Agreement {agreement_id} not found.", entity="agreement", entity_id=agreement_id)
        return self.schedules_repository.get_by_agreement_id(agreement_id)

    # --- lifecycle --------------------------------------------------------------

    def record_payment(self,
                       installment_id: int,
                       amount_paid: int,
                       payment_method: Union[PaymentMethod, str],
                       payment_date: date,
                       reference_number: Optional[str] = None,
                       notes: Optional[str] = None,
                       mirror_to_ledger: bool = False,
                       actor: Optional[str] = None) -> PaymentRecordEntity:
        """
        Records money received against an installment and marks it paid.

        The pending->paid switch is a conditional update inside one write
        transaction, so of two concurrent calls exactly one succeeds and the
        other gets AlreadyPaid. `amount_paid` is stored as given even when it
        differs from the scheduled amount.
        """
        if isinstance(amount_paid, bool) or not isinstance(amount_paid, int):
            raise ValidationError(f"amount_paid must be an integer number of minor units, got {amount_paid!r}.",
                                  entity="installment", entity_id=installment_id)
        if amount_paid < 0:
            raise ValidationError("amount_paid cannot be negative.", entity="installment", entity_id=installment_id)
        if not isinstance(payment_method, PaymentMethod):
            try:
                payment_method = PaymentMethod(payment_method)
            except ValueError:
                raise ValidationError(f"Unknown payment method: {payment_method!r}",
                                      entity="installment", entity_id=installment_id)
        payment_date = to_date(payment_date)
        if payment_date is None:
            raise ValidationError("payment_date is required.", entity="installment", entity_id=installment_id)
        if mirror_to_ledger and self.transaction_manager is None:
            raise ValidationError("Ledger mirroring requested but no transaction manager is configured.")

        with self.db_manager.transaction() as conn:
            installment = self.get_installment(installment_id, conn=conn)
            if installment.is_paid:
                logger.warning(f"Installment ID {installment_id} is already paid; payment rejected.")
                raise AlreadyPaid(f"Installment {installment_id} is already paid.",
                                  entity="installment", entity_id=installment_id)

            if not self.schedules_repository.compare_and_set(
                    installment_id,
                    expected={"status": InstallmentStatus.PENDING},
                    changes={"status": InstallmentStatus.PAID},
                    conn=conn):
                raise AlreadyPaid(f"Installment {installment_id} was paid concurrently.",
                                  entity="installment", entity_id=installment_id)

            record = self.payment_records_repository.add(PaymentRecordEntity(
                installment_id=installment_id,
                agreement_id=installment.agreement_id,
                payment_date=payment_date,
                amount_paid=amount_paid,
                payment_method=payment_method,
                reference_number=reference_number,
                notes=notes,
                created_at=datetime.now().replace(microsecond=0),
            ), conn=conn)

            if amount_paid != installment.amount:
                logger.warning(f"Installment ID {installment_id}: paid {amount_paid}, scheduled {installment.amount}. "
                               f"Recording the amount actually received.")

            agreement = self.agreements_repository.get_by_id(installment.agreement_id, conn=conn)
            if mirror_to_ledger and amount_paid == 0:
                # ledger entries carry a positive amount; a zero collection has nothing to mirror
                logger.info(f"Installment ID {installment_id} settled with zero amount; no ledger entry created.")
            elif mirror_to_ledger:
                installment.status = InstallmentStatus.PAID
                self.transaction_manager.record_collection(installment, record, agreement.currency, actor, conn=conn)

            self._complete_agreement_if_settled(installment.agreement_id, conn)

        logger.info(f"Payment record ID {record.id} stored; installment ID {installment_id} "
                    f"(agreement ID {installment.agreement_id}) marked paid.")
        return record

    def _complete_agreement_if_settled(self, agreement_id: int, conn):
        installments = self.schedules_repository.get_by_agreement_id(agreement_id, conn=conn)
        if installments and all(inst.is_paid for inst in installments):
            if self.agreements_repository.compare_and_set(
                    agreement_id,
                    expected={"status": AgreementStatus.ACTIVE},
                    changes={"status": AgreementStatus.COMPLETED},
                    conn=conn):
                logger.info(f"Agreement ID {agreement_id} fully collected; status set to completed.")

    def mark_reminder_sent(self, installment_id: int) -> InstallmentEntity:
        """
        Flags that a reminder went out. Repeating the call is a no-op; a paid
        installment raises AlreadyPaid. Nothing is actually sent.
        """
        with self.db_manager.transaction() as conn:
            installment = self.get_installment(installment_id, conn=conn)
            if installment.is_paid:
                raise AlreadyPaid(f"Installment {installment_id} is paid; reminders no longer apply.",
                                  entity="installment", entity_id=installment_id)
            if installment.reminder_sent:
                logger.debug(f"Reminder for installment ID {installment_id} already flagged.")
                return installment

            self.schedules_repository.compare_and_set(
                installment_id,
                expected={"status": InstallmentStatus.PENDING},
                changes={"reminder_sent": True},
                conn=conn)
            installment.reminder_sent = True

        logger.info(f"Reminder flagged as sent for installment ID {installment_id}.")
        return installment

    # --- buckets ------------------------------------------------------------------

    def due_this_month(self, today: date) -> List[InstallmentEntity]:
        start_date, end_date = month_bounds(today.month, today.year)
        return self.schedules_repository.get_pending_in_range(start_date, end_date)

    def upcoming(self, today: date) -> List[InstallmentEntity]:
        return self.schedules_repository.get_pending_in_range(
            today, today + timedelta(days=self.upcoming_window_days))

    def overdue(self, today: date) -> List[InstallmentEntity]:
        return self.schedules_repository.get_pending_in_range(None, today - timedelta(days=1))

    def classify(self, installment: InstallmentEntity, today: date) -> Optional[CollectionBucket]:
        return classify_installment(installment, today, self.upcoming_window_days)

    def get_installments(self,
                         agreement_id: Optional[int] = None,
                         bucket: Optional[Union[CollectionBucket, str]] = None,
                         today: Optional[date] = None) -> List[InstallmentEntity]:
        """
        Installments of one agreement, or of one bucket, or both intersected.
        A bucket query needs `today`; the engine never reads the clock itself.
        """
        if agreement_id is None and bucket is None:
            raise ValidationError("Either agreement_id or bucket is required.")

        if bucket is None:
            return self.get_installments_for_agreement(agreement_id)

        bucket = parse_bucket(bucket)
        if today is None:
            raise ValidationError("A bucket query needs an explicit 'today' date.")
        queries = {
            CollectionBucket.THIS_MONTH: self.due_this_month,
            CollectionBucket.UPCOMING: self.upcoming,
            CollectionBucket.OVERDUE: self.overdue,
        }
        if agreement_id is not None and self.agreements_repository.get_by_id(agreement_id) is None:
            raise NotFound(f"Agreement {agreement_id} not found.", entity="agreement", entity_id=agreement_id)
        installments = queries[bucket](today)
        if agreement_id is not None:
            installments = [inst for inst in installments if inst.agreement_id == agreement_id]
        return installments

    # --- reporting ------------------------------------------------------------------

    def get_payment_records(self, agreement_id: int) -> List[PaymentRecordEntity]:
        return self.payment_records_repository.get_by_agreement_id(agreement_id)

    def get_payment_record_for_installment(self, installment_id: int) -> Optional[PaymentRecordEntity]:
        return self.payment_records_repository.get_by_installment_id(installment_id)

    def payments_received(self, start_date: date, end_date: date) -> List[PaymentRecordEntity]:
        """Receipts dated within [start_date, end_date], oldest first."""
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date.")
        return self.payment_records_repository.get_by_date_range(start_date, end_date)

    def outstanding_balance(self, agreement_id: int) -> int:
        """Sum of the scheduled amounts still pending for the agreement."""
        return sum(inst.amount for inst in self.get_installments_for_agreement(agreement_id) if not inst.is_paid)

    def collected_total(self, agreement_id: int) -> int:
        return sum(record.amount_paid for record in self.get_payment_records(agreement_id))

    def collection_stats(self, today: date) -> Dict[str, Any]:
        """Counts and amounts per bucket for the payment-reminders dashboard."""
        stats: Dict[str, Any] = {}
        for bucket in CollectionBucket:
            installments = self.get_installments(bucket=bucket, today=today)
            stats[bucket.value] = {
                "count": len(installments),
                "amount": sum(inst.amount for inst in installments),
                "reminders_pending": sum(1 for inst in installments if not inst.reminder_sent),
            }
        return stats
