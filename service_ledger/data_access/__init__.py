# service_ledger/data_access/__init__.py

from .database_manager import DatabaseManager
from .base_repository import BaseRepository

from .agreements_repository import AgreementsRepository
from .payment_schedules_repository import PaymentSchedulesRepository
from .payment_records_repository import PaymentRecordsRepository
from .account_categories_repository import AccountCategoriesRepository
from .account_transactions_repository import AccountTransactionsRepository
