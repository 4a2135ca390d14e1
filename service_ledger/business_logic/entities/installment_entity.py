# service_ledger/business_logic/entities/installment_entity.py
from dataclasses import dataclass, field
from datetime import date, timedelta
from .base_entity import BaseEntity
from service_ledger.config import REMINDER_LEAD_DAYS
from service_ledger.constants import InstallmentStatus

@dataclass
class InstallmentEntity(BaseEntity):
    agreement_id: int # Foreign Key to AgreementEntity
    payment_number: int # 1-based, gapless within the agreement
    due_date: date
    amount: int # minor units
    status: InstallmentStatus = field(default=InstallmentStatus.PENDING)
    reminder_sent: bool = field(default=False)

    @property
    def is_paid(self) -> bool:
        return self.status == InstallmentStatus.PAID

    @property
    def reminder_date(self) -> date:
        return self.due_date - timedelta(days=REMINDER_LEAD_DAYS)

    def days_until_due(self, today: date) -> int:
        return (self.due_date - today).days
