# service_ledger/business_logic/entities/__init__.py
from .base_entity import BaseEntity
from .installment_entity import InstallmentEntity
from .agreement_entity import AgreementEntity
from .payment_record_entity import PaymentRecordEntity
from .account_category_entity import AccountCategoryEntity
from .account_transaction_entity import AccountTransactionEntity
from .financial_summary_entity import FinancialSummary

__all__ = [
    "BaseEntity", "InstallmentEntity", "AgreementEntity", "PaymentRecordEntity",
    "AccountCategoryEntity", "AccountTransactionEntity", "FinancialSummary",
]
