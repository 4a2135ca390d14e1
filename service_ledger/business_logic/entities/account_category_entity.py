# service_ledger/business_logic/entities/account_category_entity.py
from dataclasses import dataclass, field
from typing import Optional
from .base_entity import BaseEntity
from service_ledger.constants import TransactionType

@dataclass
class AccountCategoryEntity(BaseEntity):
    name: str
    type: TransactionType
    description: Optional[str] = field(default=None)
    is_active: bool = field(default=True)
