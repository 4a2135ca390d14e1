# service_ledger/config.py

import os
import logging

# --- Database Configuration ---
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.environ.get("SERVICE_LEDGER_DATA_DIR", os.path.join(BASE_DIR, "data"))
DB_NAME = "service_ledger.db"
DATABASE_PATH = os.path.join(DATA_DIR, DB_NAME)

# --- Logging Configuration ---
LOGS_DIR = os.environ.get("SERVICE_LEDGER_LOG_DIR", os.path.join(BASE_DIR, "logs"))
LOG_FILE_NAME = "service_ledger.log"
LOG_FILE_PATH = os.path.join(LOGS_DIR, LOG_FILE_NAME)

LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
            'level': logging.DEBUG,
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'standard',
            'filename': LOG_FILE_PATH,
            'maxBytes': 1024*1024*5,  # 5 MB
            'backupCount': 5,
            'level': logging.INFO,
            'encoding': 'utf-8',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': logging.DEBUG,
    },
}


def ensure_directories():
    """Creates the data and log directories if they don't exist."""
    for path in (DATA_DIR, LOGS_DIR):
        if not os.path.exists(path):
            os.makedirs(path)


# --- Application Settings ---
DEFAULT_CURRENCY = "INR"
CURRENCY_SYMBOLS = {"INR": "₹", "USD": "$", "EUR": "€"}

# Category names the aggregator looks up for its policy sub-totals.
PAYROLL_CATEGORY_NAME = "Salary"
ADVANCE_CATEGORY_NAME = "Advance"
# Income category used when a collected installment is mirrored into the ledger.
COLLECTION_CATEGORY_NAME = "Service Agreement"

REMINDER_LEAD_DAYS = 7
UPCOMING_WINDOW_DAYS = 7
RENEWAL_TERM_MONTHS = 12

# (name, type, description) seeded into account_categories on first start.
DEFAULT_CATEGORIES = [
    (COLLECTION_CATEGORY_NAME, "income", "Installments collected on client agreements"),
    ("Service Charges", "income", "Ad-hoc service call charges"),
    ("Miscellaneous Income", "income", None),
    (PAYROLL_CATEGORY_NAME, "expense", "Staff salaries"),
    (ADVANCE_CATEGORY_NAME, "expense", "Salary advances paid to staff"),
    ("Spare Parts", "expense", "Parts purchased for service tickets"),
    ("Travel", "expense", None),
    ("Office Expenses", "expense", None),
]
