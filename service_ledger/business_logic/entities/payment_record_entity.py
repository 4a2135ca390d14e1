# service_ledger/business_logic/entities/payment_record_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import date, datetime
from .base_entity import BaseEntity
from service_ledger.constants import PaymentMethod

@dataclass
class PaymentRecordEntity(BaseEntity):
    """A receipt. Written once and never updated."""
    installment_id: int
    agreement_id: int # denormalized for reporting
    payment_date: date
    amount_paid: int # minor units, may differ from the installment amount
    payment_method: PaymentMethod
    reference_number: Optional[str] = field(default=None)
    notes: Optional[str] = field(default=None)
    created_at: Optional[datetime] = field(default=None)
