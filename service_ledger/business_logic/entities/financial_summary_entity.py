# service_ledger/business_logic/entities/financial_summary_entity.py
from dataclasses import dataclass, field
from datetime import date
from service_ledger.config import DEFAULT_CURRENCY

@dataclass(frozen=True)
class FinancialSummary:
    """Derived totals for a period. Never persisted."""
    period_start: date
    period_end: date
    total_income: int = 0
    total_expenses: int = 0
    salary_expenses: int = 0
    advance_expenses: int = 0
    transaction_count: int = 0
    currency: str = field(default=DEFAULT_CURRENCY)

    @property
    def net_profit(self) -> int:
        return self.total_income - self.total_expenses

    def as_dict(self):
        return {
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "currency": self.currency,
            "total_income": self.total_income,
            "total_expenses": self.total_expenses,
            "net_profit": self.net_profit,
            "salary_expenses": self.salary_expenses,
            "advance_expenses": self.advance_expenses,
            "transaction_count": self.transaction_count,
        }
