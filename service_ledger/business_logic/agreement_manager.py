# service_ledger/business_logic/agreement_manager.py

from typing import Optional, List, Dict, Any, Union
from dataclasses import replace
from datetime import date, datetime
import logging

from service_ledger.business_logic.entities.agreement_entity import AgreementEntity, PRICING_FIELDS
from service_ledger.business_logic.entities.installment_entity import InstallmentEntity
from service_ledger.business_logic import schedule_generator
from service_ledger.data_access.agreements_repository import AgreementsRepository
from service_ledger.data_access.payment_schedules_repository import PaymentSchedulesRepository
from service_ledger.config import DEFAULT_CURRENCY, RENEWAL_TERM_MONTHS
from service_ledger.constants import PaymentFrequency, PaymentMode, AgreementStatus, FREQUENCY_LABELS
from service_ledger.exceptions import ValidationError, StateConflict, ScheduleLocked, NotFound
from service_ledger.utils.money import Money
from service_ledger.utils.periods import add_months, days_between, to_date

logger = logging.getLogger(__name__)

# Changing any of these changes the installment set.
SCHEDULE_FIELDS = set(PRICING_FIELDS) | {"agreement_date", "payment_frequency"}
EDITABLE_FIELDS = SCHEDULE_FIELDS | {"payment_mode", "payment_details", "other_details"}


class AgreementManager:
    def __init__(self,
                 agreements_repository: AgreementsRepository,
                 schedules_repository: PaymentSchedulesRepository):
        if agreements_repository is None: raise ValueError("agreements_repository cannot be None")
        if schedules_repository is None: raise ValueError("schedules_repository cannot be None")

        self.agreements_repository = agreements_repository
        self.schedules_repository = schedules_repository

    @property
    def db_manager(self):
        return self.agreements_repository.db_manager

    # --- validation -------------------------------------------------------------

    @staticmethod
    def _validate(agreement: AgreementEntity) -> AgreementEntity:
        """Coerces enum/date fields, checks pricing lines and recomputes the totals."""
        if isinstance(agreement.client_id, bool) or not isinstance(agreement.client_id, int) or agreement.client_id <= 0:
            raise ValidationError(f"Invalid client_id: {agreement.client_id!r}", entity="agreement", entity_id=agreement.id)

        agreement.agreement_date = to_date(agreement.agreement_date)
        if agreement.agreement_date is None:
            raise ValidationError("Agreement date is required.", entity="agreement", entity_id=agreement.id)
        agreement.payment_frequency = schedule_generator.parse_frequency(agreement.payment_frequency)
        if not isinstance(agreement.payment_mode, PaymentMode):
            try:
                agreement.payment_mode = PaymentMode(agreement.payment_mode)
            except ValueError:
                raise ValidationError(f"Unknown payment mode: {agreement.payment_mode!r}",
                                      entity="agreement", entity_id=agreement.id)

        for name in PRICING_FIELDS:
            value = getattr(agreement, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"'{name}' must be an integer (counts, or minor units for rates), got {value!r}.",
                                      entity="agreement", entity_id=agreement.id)
            if value < 0:
                raise ValidationError(f"'{name}' cannot be negative.", entity="agreement", entity_id=agreement.id)

        agreement.recalculate_totals()
        return agreement

    def _build_installments(self, agreement: AgreementEntity) -> List[InstallmentEntity]:
        schedule = schedule_generator.generate(
            Money(agreement.total_cost, agreement.currency), agreement.agreement_date, agreement.payment_frequency)
        return [
            InstallmentEntity(
                agreement_id=agreement.id,
                payment_number=item.payment_number,
                due_date=item.due_date,
                amount=item.amount.minor_units,
            )
            for item in schedule
        ]

    def _store_schedule(self, agreement: AgreementEntity, conn) -> List[InstallmentEntity]:
        return [self.schedules_repository.add(inst, conn=conn) for inst in self._build_installments(agreement)]

    # --- write operations -------------------------------------------------------

    def create_agreement(self,
                         client_id: int,
                         agreement_date: date,
                         payment_frequency: Union[PaymentFrequency, str],
                         payment_mode: Union[PaymentMode, str] = PaymentMode.CASH,
                         currency: str = DEFAULT_CURRENCY,
                         payment_details: Optional[str] = None,
                         other_details: Optional[str] = None,
                         **pricing: int) -> AgreementEntity:
        """
        Creates an agreement and its installment schedule in one transaction.
        `pricing` takes the equipment counts, unit rates, networking_rate and
        discount (rates and discount in minor units). Totals are always computed
        here; a caller-supplied subtotal or total_cost is refused.
        """
        unknown = set(pricing) - set(PRICING_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown or non-editable agreement fields: {', '.join(sorted(unknown))}.",
                                  entity="agreement")

        agreement = self._validate(AgreementEntity(
            client_id=client_id,
            agreement_date=agreement_date,
            payment_frequency=payment_frequency,
            payment_mode=payment_mode,
            currency=currency,
            payment_details=payment_details,
            other_details=other_details,
            created_at=datetime.now().replace(microsecond=0),
            **pricing,
        ))

        with self.db_manager.transaction() as conn:
            self.agreements_repository.add(agreement, conn=conn)
            agreement.installments = self._store_schedule(agreement, conn)

        logger.info(f"Agreement ID {agreement.id} created for client {client_id}: total {agreement.total_cost} "
                    f"{agreement.currency}, {len(agreement.installments)} installment(s) ({agreement.payment_frequency.value}).")
        return agreement

    def update_agreement(self, agreement_id: int, patch: Dict[str, Any]) -> AgreementEntity:
        """
        Edits an active agreement. Totals are recomputed; if pricing, discount,
        agreement date or frequency changed, the schedule is regenerated. Once
        any installment has been paid such a change raises ScheduleLocked and
        nothing is modified.
        """
        forbidden = set(patch) - EDITABLE_FIELDS
        if forbidden:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(forbidden))}.",
                                  entity="agreement", entity_id=agreement_id)

        with self.db_manager.transaction() as conn:
            current = self._get_or_raise(agreement_id, conn=conn)
            if not current.is_active:
                raise StateConflict(f"Agreement {agreement_id} is {current.status.value}; only active agreements can be edited.",
                                    entity="agreement", entity_id=agreement_id)

            updated = self._validate(replace(current, **patch))
            updated.id = current.id
            schedule_changed = any(getattr(updated, name) != getattr(current, name) for name in SCHEDULE_FIELDS)

            if schedule_changed:
                paid_count = self.schedules_repository.count_paid_by_agreement_id(agreement_id, conn=conn)
                if paid_count:
                    logger.warning(f"Refused schedule change on agreement ID {agreement_id}: {paid_count} installment(s) paid.")
                    raise ScheduleLocked(
                        f"Agreement {agreement_id} has {paid_count} paid installment(s); its pricing, date and "
                        f"frequency are locked. Record a manual adjustment instead.",
                        entity="agreement", entity_id=agreement_id)
                self.schedules_repository.delete_pending_by_agreement_id(agreement_id, conn=conn)

            self.agreements_repository.update(updated, conn=conn)
            if schedule_changed:
                self._store_schedule(updated, conn)
            updated.installments = self.schedules_repository.get_by_agreement_id(agreement_id, conn=conn)

        if schedule_changed:
            logger.info(f"Agreement ID {agreement_id} repriced to {updated.total_cost}; "
                        f"schedule regenerated with {len(updated.installments)} installment(s).")
        else:
            logger.info(f"Agreement ID {agreement_id} details updated: {sorted(patch)}.")
        return updated

    def cancel_agreement(self, agreement_id: int) -> AgreementEntity:
        """Cancels an active agreement. Its pending installments stay on record but leave every collection bucket."""
        with self.db_manager.transaction() as conn:
            current = self._get_or_raise(agreement_id, conn=conn)
            if not self.agreements_repository.compare_and_set(
                    agreement_id,
                    expected={"status": AgreementStatus.ACTIVE},
                    changes={"status": AgreementStatus.CANCELLED},
                    conn=conn):
                raise StateConflict(f"Agreement {agreement_id} is {current.status.value} and cannot be cancelled.",
                                    entity="agreement", entity_id=agreement_id)
            current.status = AgreementStatus.CANCELLED
        logger.info(f"Agreement ID {agreement_id} cancelled.")
        return current

    # --- queries ----------------------------------------------------------------

    def _get_or_raise(self, agreement_id: int, conn=None) -> AgreementEntity:
        agreement = self.agreements_repository.get_by_id(agreement_id, conn=conn)
        if agreement is None:
            raise NotFound(f"Agreement {agreement_id} not found.", entity="agreement", entity_id=agreement_id)
        return agreement

    def get_agreement(self, agreement_id: int, include_installments: bool = True) -> AgreementEntity:
        agreement = self._get_or_raise(agreement_id)
        if include_installments:
            agreement.installments = self.schedules_repository.get_by_agreement_id(agreement_id)
        return agreement

    def list_agreements(self,
                        client_id: Optional[int] = None,
                        status: Optional[AgreementStatus] = None) -> List[AgreementEntity]:
        if client_id is not None:
            agreements = self.agreements_repository.get_by_client_id(client_id)
            return [a for a in agreements if status is None or a.status == status]
        if status is not None:
            return self.agreements_repository.get_by_status(status)
        return self.agreements_repository.get_all(order_by="agreement_date DESC, id DESC")

    def preview_schedule(self,
                         total_cost: int,
                         agreement_date: date,
                         payment_frequency: Union[PaymentFrequency, str],
                         currency: str = DEFAULT_CURRENCY) -> Dict[str, Any]:
        """Payment plan shown while an agreement is being drafted; nothing is stored."""
        frequency = schedule_generator.parse_frequency(payment_frequency)
        total = Money(total_cost, currency)
        return {
            "frequency": frequency.value,
            "frequency_label": FREQUENCY_LABELS[frequency],
            "split": schedule_generator.describe_split(total, frequency),
            "payments": schedule_generator.preview(total, to_date(agreement_date), frequency),
        }

    def renewal_reminders(self, today: date) -> List[Dict[str, Any]]:
        """Active agreements with their next renewal date (one term after signing) and the days left."""
        reminders = []
        for agreement in self.agreements_repository.get_by_status(AgreementStatus.ACTIVE):
            next_renewal = add_months(agreement.agreement_date, RENEWAL_TERM_MONTHS)
            reminders.append({
                "agreement_id": agreement.id,
                "client_id": agreement.client_id,
                "agreement_date": agreement.agreement_date,
                "next_renewal": next_renewal,
                "days_until_renewal": days_between(today, next_renewal),
            })
        return sorted(reminders, key=lambda r: r["next_renewal"])
