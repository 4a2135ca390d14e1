# service_ledger/business_logic/entities/agreement_entity.py
from dataclasses import dataclass, field
from typing import Optional, List
from datetime import date, datetime
from .base_entity import BaseEntity
from .installment_entity import InstallmentEntity
from service_ledger.config import DEFAULT_CURRENCY
from service_ledger.constants import PaymentFrequency, PaymentMode, AgreementStatus

# (count field, unit rate field) for every counted equipment line
EQUIPMENT_LINES = [
    ("systems", "system_rate"),
    ("laptops", "laptop_rate"),
    ("printers", "printer_rate"),
    ("servers", "server_rate"),
]
PRICING_FIELDS = [name for line in EQUIPMENT_LINES for name in line] + ["networking_rate", "discount"]

@dataclass
class AgreementEntity(BaseEntity):
    client_id: int
    agreement_date: date
    payment_frequency: PaymentFrequency
    payment_mode: PaymentMode = field(default=PaymentMode.CASH)

    # Equipment counts and unit rates; rates and discount are in minor units.
    systems: int = field(default=0)
    system_rate: int = field(default=0)
    laptops: int = field(default=0)
    laptop_rate: int = field(default=0)
    printers: int = field(default=0)
    printer_rate: int = field(default=0)
    servers: int = field(default=0)
    server_rate: int = field(default=0)
    networking_rate: int = field(default=0) # flat charge, not multiplied by a count
    discount: int = field(default=0)

    # Always derived from the lines above, see recalculate_totals()
    subtotal: int = field(default=0)
    total_cost: int = field(default=0)

    currency: str = field(default=DEFAULT_CURRENCY)
    status: AgreementStatus = field(default=AgreementStatus.ACTIVE)
    payment_details: Optional[str] = field(default=None)
    other_details: Optional[str] = field(default=None)
    created_at: Optional[datetime] = field(default=None)

    installments: List[InstallmentEntity] = field(default_factory=list, init=False, compare=False, repr=False)

    def calculate_subtotal(self) -> int:
        line_total = sum(getattr(self, count) * getattr(self, rate) for count, rate in EQUIPMENT_LINES)
        return line_total + self.networking_rate

    def recalculate_totals(self):
        self.subtotal = self.calculate_subtotal()
        self.total_cost = max(self.subtotal - self.discount, 0)

    @property
    def is_active(self) -> bool:
        return self.status == AgreementStatus.ACTIVE
