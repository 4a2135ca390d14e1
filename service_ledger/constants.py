# service_ledger/constants.py

from enum import Enum

# General
DATE_FORMAT = "%Y-%m-%d"
DISPLAY_DATE_FORMAT = "%d/%m/%Y"

class PaymentFrequency(Enum):
    FULL = "full"
    HALF_YEARLY = "half_yearly"
    QUARTERLY = "quarterly"
    THREE_TIMES = "three_times"
    MONTHLY = "monthly"

# frequency -> (number of installments, months between installments)
FREQUENCY_PLAN = {
    PaymentFrequency.FULL: (1, 0),
    PaymentFrequency.HALF_YEARLY: (2, 6),
    PaymentFrequency.QUARTERLY: (4, 3),
    PaymentFrequency.THREE_TIMES: (3, 4),
    PaymentFrequency.MONTHLY: (12, 1),
}

FREQUENCY_LABELS = {
    PaymentFrequency.FULL: "Full Payment",
    PaymentFrequency.HALF_YEARLY: "Half Yearly",
    PaymentFrequency.QUARTERLY: "Quarterly",
    PaymentFrequency.THREE_TIMES: "Three Times a Year",
    PaymentFrequency.MONTHLY: "Monthly",
}

class PaymentMode(Enum):
    CASH = "cash"
    CHEQUE = "cheque"
    BANK_TRANSFER = "bank_transfer"
    OTHER = "other"

class PaymentMethod(Enum):
    CASH = "cash"
    CHEQUE = "cheque"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    CARD = "card"
    OTHER = "other"

class AgreementStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class InstallmentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"

class TransactionType(Enum):
    INCOME = "income"
    EXPENSE = "expense"

class TransactionStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

# For AccountTransaction.reference_type
class ReferenceType(Enum):
    INSTALLMENT = "installment"
    SERVICE_TICKET = "service_ticket"

class CollectionBucket(Enum):
    THIS_MONTH = "this_month"
    UPCOMING = "upcoming"
    OVERDUE = "overdue"

# Urgency order used when one installment falls in several buckets.
BUCKET_PRIORITY = [CollectionBucket.OVERDUE, CollectionBucket.UPCOMING, CollectionBucket.THIS_MONTH]

class DateRangePreset(Enum):
    CURRENT_MONTH = "current_month"
    LAST_MONTH = "last_month"
    LAST_3_MONTHS = "last_3_months"
    CURRENT_YEAR = "current_year"
