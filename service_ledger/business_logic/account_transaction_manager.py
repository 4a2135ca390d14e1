# service_ledger/business_logic/account_transaction_manager.py

from typing import Optional, List, Dict, Any, Union
from dataclasses import replace
from datetime import date, datetime
import logging

from service_ledger.business_logic.entities.account_transaction_entity import AccountTransactionEntity
from service_ledger.business_logic.entities.installment_entity import InstallmentEntity
from service_ledger.business_logic.entities.payment_record_entity import PaymentRecordEntity
from service_ledger.business_logic.account_category_manager import AccountCategoryManager, parse_transaction_type
from service_ledger.data_access.account_transactions_repository import AccountTransactionsRepository
from service_ledger.config import COLLECTION_CATEGORY_NAME
from service_ledger.constants import TransactionType, TransactionStatus, PaymentMethod, ReferenceType
from service_ledger.exceptions import ValidationError, CategoryTypeMismatch, AlreadyFinalized, NotFound
from service_ledger.utils.periods import to_date

logger = logging.getLogger(__name__)

# Fields a pending transaction may be edited on. Status and the actor columns
# only change through approve/reject.
UPDATABLE_FIELDS = {
    "transaction_date", "type", "category_id", "amount", "description", "payment_method",
    "vendor_customer", "invoice_number", "receipt_number", "reference_number", "notes",
    "reference_type", "reference_id",
}


class AccountTransactionManager:
    def __init__(self,
                 transactions_repository: AccountTransactionsRepository,
                 category_manager: AccountCategoryManager):
        """
        :param transactions_repository: An instance of AccountTransactionsRepository.
        :param category_manager: Used to resolve categories and enforce the type guard.
        """
        if transactions_repository is None:
            raise ValueError("transactions_repository cannot be None")
        if category_manager is None:
            raise ValueError("category_manager cannot be None")

        self.transactions_repository = transactions_repository
        self.category_manager = category_manager

    @property
    def db_manager(self):
        return self.transactions_repository.db_manager

    # --- validation -----------------------------------------------------------

    @staticmethod
    def _check_actor(actor: Any) -> str:
        if not isinstance(actor, str) or not actor.strip():
            raise ValidationError("An actor id is required for this operation.", entity="account_transaction")
        return actor.strip()

    def _normalise(self,
                   transaction: AccountTransactionEntity,
                   conn=None,
                   previous_category_id: Optional[int] = None) -> AccountTransactionEntity:
        """
        Coerces enum/date fields and validates amount, category and reference link.
        An inactive category is refused for new entries and when an entry is moved
        onto it; entries already filed under it stay editable.
        """
        transaction.type = parse_transaction_type(transaction.type)
        transaction.transaction_date = to_date(transaction.transaction_date)
        if transaction.transaction_date is None:
            raise ValidationError("Transaction date is required.", entity="account_transaction", entity_id=transaction.id)

        if not isinstance(transaction.payment_method, PaymentMethod):
            try:
                transaction.payment_method = PaymentMethod(transaction.payment_method)
            except ValueError:
                raise ValidationError(f"Unknown payment method: {transaction.payment_method!r}",
                                      entity="account_transaction", entity_id=transaction.id)

        amount = transaction.amount
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError(f"Transaction amount must be an integer number of minor units, got {amount!r}.",
                                  entity="account_transaction", entity_id=transaction.id)
        if amount <= 0:
            raise ValidationError("Transaction amount must be a positive number.",
                                  entity="account_transaction", entity_id=transaction.id)

        if transaction.reference_type is not None and not isinstance(transaction.reference_type, ReferenceType):
            try:
                transaction.reference_type = ReferenceType(transaction.reference_type)
            except ValueError:
                raise ValidationError(f"Unknown reference type: {transaction.reference_type!r}",
                                      entity="account_transaction", entity_id=transaction.id)
        if (transaction.reference_type is None) != (transaction.reference_id is None):
            raise ValidationError("reference_type and reference_id must be given together.",
                                  entity="account_transaction", entity_id=transaction.id)

        category = self.category_manager.get_category(transaction.category_id, conn=conn)
        if not category.is_active and (transaction.id is None or category.id != previous_category_id):
            raise ValidationError(f"Account category '{category.name}' is inactive and takes no new entries.",
                                  entity="account_transaction", entity_id=transaction.id)
        if category.type != transaction.type:
            logger.warning(f"Rejected {transaction.type.value} transaction against {category.type.value} "
                           f"category '{category.name}' (ID {category.id}).")
            raise CategoryTypeMismatch(
                f"Transaction type '{transaction.type.value}' does not match category "
                f"'{category.name}' of type '{category.type.value}'.",
                entity="account_transaction", entity_id=transaction.id)
        return transaction

    # --- write operations -------------------------------------------------------

    def create_transaction(self, transaction: AccountTransactionEntity, actor: str, conn=None) -> AccountTransactionEntity:
        """
        Stores a new ledger entry as PENDING whatever status the caller set.
        Raises CategoryTypeMismatch (and stores nothing) when the entry's type
        differs from its category's type.
        """
        actor = self._check_actor(actor)
        entity = replace(transaction, status=TransactionStatus.PENDING, approved_by=None,
                         created_by=actor, created_at=datetime.now().replace(microsecond=0))
        entity.id = None

        if conn is not None:
            created = self._insert(entity, conn)
        else:
            with self.db_manager.transaction() as own_conn:
                created = self._insert(entity, own_conn)
        logger.info(f"AccountTransaction ID {created.id} created by {actor}: {created.type.value} "
                    f"{created.amount} {created.currency} on {created.transaction_date}.")
        return created

    def _insert(self, entity: AccountTransactionEntity, conn) -> AccountTransactionEntity:
        self._normalise(entity, conn=conn)
        return self.transactions_repository.add(entity, conn=conn)

    def update_transaction(self, transaction_id: int, patch: Dict[str, Any]) -> AccountTransactionEntity:
        """Edits a PENDING transaction. Approved or rejected entries raise AlreadyFinalized."""
        forbidden = set(patch) - UPDATABLE_FIELDS
        if forbidden:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(forbidden))}.",
                                  entity="account_transaction", entity_id=transaction_id)

        with self.db_manager.transaction() as conn:
            current = self._get_or_raise(transaction_id, conn=conn)
            if not current.is_pending:
                raise AlreadyFinalized(
                    f"Transaction {transaction_id} is {current.status.value} and can no longer be edited.",
                    entity="account_transaction", entity_id=transaction_id)

            updated = replace(current, **patch)
            updated.id = current.id
            self._normalise(updated, conn=conn, previous_category_id=current.category_id)
            self.transactions_repository.update(updated, conn=conn)

        logger.info(f"AccountTransaction ID {transaction_id} updated: {sorted(patch)}.")
        return updated

    def approve_transaction(self, transaction_id: int, actor: str) -> AccountTransactionEntity:
        actor = self._check_actor(actor)
        return self._finalize(transaction_id, TransactionStatus.APPROVED, actor)

    def reject_transaction(self, transaction_id: int, actor: str) -> AccountTransactionEntity:
        actor = self._check_actor(actor)
        return self._finalize(transaction_id, TransactionStatus.REJECTED, actor)

    def _finalize(self, transaction_id: int, new_status: TransactionStatus, actor: str) -> AccountTransactionEntity:
        changes: Dict[str, Any] = {"status": new_status}
        if new_status == TransactionStatus.APPROVED:
            changes["approved_by"] = actor

        with self.db_manager.transaction() as conn:
            current = self._get_or_raise(transaction_id, conn=conn)
            applied = self.transactions_repository.compare_and_set(
                transaction_id, expected={"status": TransactionStatus.PENDING}, changes=changes, conn=conn)
            if not applied:
                logger.warning(f"Cannot mark transaction {transaction_id} {new_status.value}: "
                               f"already {current.status.value}.")
                raise AlreadyFinalized(
                    f"Transaction {transaction_id} is already {current.status.value}.",
                    entity="account_transaction", entity_id=transaction_id)
            result = self.transactions_repository.get_by_id(transaction_id, conn=conn)

        logger.info(f"AccountTransaction ID {transaction_id} {new_status.value} by {actor}.")
        return result

    def delete_transaction(self, transaction_id: int) -> bool:
        """
        Hard delete regardless of status, so erroneous entries can be removed.
        An approved entry disappears from every later summary.
        """
        with self.db_manager.transaction() as conn:
            current = self._get_or_raise(transaction_id, conn=conn)
            self.transactions_repository.delete(transaction_id, conn=conn)
        logger.warning(f"AccountTransaction ID {transaction_id} ({current.status.value}, "
                       f"{current.type.value} {current.amount}) hard-deleted.")
        return True

    def record_collection(self,
                          installment: InstallmentEntity,
                          payment_record: PaymentRecordEntity,
                          currency: str,
                          actor: str,
                          conn=None) -> AccountTransactionEntity:
        """
        Mirrors a collected installment into the ledger as an APPROVED income
        entry linked back to the installment.
        """
        actor = self._check_actor(actor)
        category = self.category_manager.get_category_by_name(COLLECTION_CATEGORY_NAME, conn=conn)
        if category is None:
            raise NotFound(f"Collection category '{COLLECTION_CATEGORY_NAME}' is not configured.",
                           entity="account_category")

        entry = AccountTransactionEntity(
            transaction_date=payment_record.payment_date,
            type=TransactionType.INCOME,
            category_id=category.id,
            amount=payment_record.amount_paid,
            currency=currency,
            created_by=actor,
            description=f"Installment #{installment.payment_number} of agreement {installment.agreement_id}",
            payment_method=payment_record.payment_method,
            reference_number=payment_record.reference_number,
            reference_type=ReferenceType.INSTALLMENT,
            reference_id=installment.id,
        )
        created = self.create_transaction(entry, actor, conn=conn)
        self.transactions_repository.compare_and_set(
            created.id, expected={"status": TransactionStatus.PENDING},
            changes={"status": TransactionStatus.APPROVED, "approved_by": actor}, conn=conn)
        created.status = TransactionStatus.APPROVED
        created.approved_by = actor
        logger.info(f"Installment ID {installment.id} mirrored to ledger as transaction ID {created.id}.")
        return created

    # --- queries ----------------------------------------------------------------

    def _get_or_raise(self, transaction_id: int, conn=None) -> AccountTransactionEntity:
        transaction = self.transactions_repository.get_by_id(transaction_id, conn=conn)
        if transaction is None:
            raise NotFound(f"Transaction {transaction_id} not found.",
                           entity="account_transaction", entity_id=transaction_id)
        return transaction

    def get_transaction(self, transaction_id: int) -> AccountTransactionEntity:
        return self._get_or_raise(transaction_id)

    def get_transactions_by_reference(self, reference_id: int, reference_type: ReferenceType) -> List[AccountTransactionEntity]:
        return self.transactions_repository.get_by_reference(reference_id, reference_type)

    def list_transactions(self,
                          start_date: date,
                          end_date: date,
                          transaction_type: Optional[Union[TransactionType, str]] = None,
                          status: Optional[Union[TransactionStatus, str]] = None,
                          category_name: Optional[str] = None,
                          search: Optional[str] = None) -> List[AccountTransactionEntity]:
        """
        Transactions dated within [start_date, end_date], newest first, with the
        accounting screen's filters. `search` matches description, vendor/customer,
        reference number or invoice number, case-insensitively.
        """
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date.")

        category_id = None
        if category_name:
            category = self.category_manager.get_category_by_name(category_name)
            if category is None:
                return []
            category_id = category.id
        if status is not None and not isinstance(status, TransactionStatus):
            try:
                status = TransactionStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown transaction status: {status!r}")

        transactions = self.transactions_repository.get_by_date_range(
            start_date, end_date,
            status=status,
            transaction_type=parse_transaction_type(transaction_type) if transaction_type else None,
            category_id=category_id,
        )
        if search:
            needle = search.strip().lower()
            transactions = [
                t for t in transactions
                if any(needle in (value or "").lower()
                       for value in (t.description, t.vendor_customer, t.reference_number, t.invoice_number))
            ]
        return transactions
