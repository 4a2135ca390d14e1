# service_ledger/business_logic/financial_summary_manager.py

from typing import Optional
from datetime import date
import logging

from service_ledger.business_logic.entities.financial_summary_entity import FinancialSummary
from service_ledger.business_logic.account_category_manager import AccountCategoryManager
from service_ledger.data_access.account_transactions_repository import AccountTransactionsRepository
from service_ledger.config import PAYROLL_CATEGORY_NAME, ADVANCE_CATEGORY_NAME, DEFAULT_CURRENCY
from service_ledger.constants import TransactionType, TransactionStatus, DateRangePreset
from service_ledger.exceptions import ValidationError
from service_ledger.utils.periods import month_bounds, date_range_for_preset

logger = logging.getLogger(__name__)


class FinancialSummaryManager:
    """
    Rolls approved ledger entries up into period totals. Pending and rejected
    entries never count. The payroll and advance sub-totals are found by
    category name, so renaming the configured names re-targets them.
    """

    def __init__(self,
                 transactions_repository: AccountTransactionsRepository,
                 category_manager: AccountCategoryManager,
                 payroll_category_name: str = PAYROLL_CATEGORY_NAME,
                 advance_category_name: str = ADVANCE_CATEGORY_NAME,
                 currency: str = DEFAULT_CURRENCY):
        if transactions_repository is None: raise ValueError("transactions_repository cannot be None")
        if category_manager is None: raise ValueError("category_manager cannot be None")

        self.transactions_repository = transactions_repository
        self.category_manager = category_manager
        self.payroll_category_name = payroll_category_name
        self.advance_category_name = advance_category_name
        self.currency = currency

    def _category_id(self, name: str) -> Optional[int]:
        category = self.category_manager.get_category_by_name(name)
        if category is None:
            logger.warning(f"Summary category '{name}' does not exist; its sub-total will be zero.")
            return None
        return category.id

    def summarize(self, month: int, year: int) -> FinancialSummary:
        start_date, end_date = month_bounds(month, year)
        return self.summarize_range(start_date, end_date)

    def summarize_preset(self, preset: DateRangePreset, today: date) -> FinancialSummary:
        start_date, end_date = date_range_for_preset(preset, today)
        return self.summarize_range(start_date, end_date)

    def summarize_range(self, start_date: date, end_date: date) -> FinancialSummary:
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date.")
        logger.info(f"Generating financial summary from {start_date} to {end_date}")

        payroll_id = self._category_id(self.payroll_category_name)
        advance_id = self._category_id(self.advance_category_name)

        total_income = total_expenses = salary = advance = count = 0
        approved = self.transactions_repository.get_by_date_range(
            start_date, end_date, status=TransactionStatus.APPROVED)
        for transaction in approved:
            if transaction.currency != self.currency:
                logger.warning(f"Skipping transaction ID {transaction.id} in {transaction.currency}; "
                               f"summary currency is {self.currency}.")
                continue
            count += 1
            if transaction.type == TransactionType.INCOME:
                total_income += transaction.amount
                continue
            total_expenses += transaction.amount
            if payroll_id is not None and transaction.category_id == payroll_id:
                salary += transaction.amount
            elif advance_id is not None and transaction.category_id == advance_id:
                advance += transaction.amount

        return FinancialSummary(
            period_start=start_date,
            period_end=end_date,
            total_income=total_income,
            total_expenses=total_expenses,
            salary_expenses=salary,
            advance_expenses=advance,
            transaction_count=count,
            currency=self.currency,
        )
