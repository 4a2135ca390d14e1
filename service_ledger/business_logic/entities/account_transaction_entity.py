# service_ledger/business_logic/entities/account_transaction_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import date, datetime
from .base_entity import BaseEntity
from service_ledger.config import DEFAULT_CURRENCY
from service_ledger.constants import TransactionType, TransactionStatus, PaymentMethod, ReferenceType

@dataclass
class AccountTransactionEntity(BaseEntity):
    transaction_date: date
    type: TransactionType
    category_id: int # Foreign Key to AccountCategoryEntity
    amount: int # minor units
    created_by: str
    description: str = field(default="")
    currency: str = field(default=DEFAULT_CURRENCY)
    payment_method: PaymentMethod = field(default=PaymentMethod.CASH)
    status: TransactionStatus = field(default=TransactionStatus.PENDING)
    approved_by: Optional[str] = field(default=None)

    vendor_customer: Optional[str] = field(default=None)
    invoice_number: Optional[str] = field(default=None)
    receipt_number: Optional[str] = field(default=None)
    reference_number: Optional[str] = field(default=None)
    notes: Optional[str] = field(default=None)

    # Optional link back to an installment or a service ticket
    reference_type: Optional[ReferenceType] = field(default=None)
    reference_id: Optional[int] = field(default=None)
    created_at: Optional[datetime] = field(default=None)

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING
