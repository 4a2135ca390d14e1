# service_ledger/data_access/database_manager.py

import sqlite3
import logging
from contextlib import contextmanager
from service_ledger.config import DATABASE_PATH, LOGGING_CONFIG, DEFAULT_CATEGORIES, ensure_directories
from service_ledger.constants import (
    PaymentFrequency, PaymentMode, PaymentMethod, AgreementStatus, InstallmentStatus,
    TransactionType, TransactionStatus, ReferenceType
)

logger = logging.getLogger(__name__)


def _enum_values(enum_cls) -> str:
    return ', '.join(f"'{member.value}'" for member in enum_cls)


class DatabaseManager:
    def __init__(self, db_path=DATABASE_PATH, timeout: float = 10.0):
        self.db_path = db_path
        self.timeout = timeout
        self.conn = None

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row # Access columns by name
        conn.execute("PRAGMA foreign_keys = ON;") # Enforce foreign key constraints
        return conn

    def __enter__(self):
        try:
            self.conn = self._connect()
            logger.debug(f"Database connection established to {self.db_path}")
            return self.conn
        except sqlite3.Error as e:
            logger.error(f"Error connecting to database {self.db_path}: {e}")
            raise

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Database connection closed.")

    @contextmanager
    def transaction(self):
        """
        Yields a connection inside BEGIN IMMEDIATE. SQLite takes the write lock
        up front, so concurrent writers from any process are serialized until
        COMMIT. Any exception rolls the whole unit of work back.
        """
        conn = self._connect()
        conn.isolation_level = None # manual transaction control
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.execute("COMMIT")
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
                logger.debug("Transaction rolled back.")
            raise
        finally:
            conn.close()

    def execute_query(self, query, params=None, conn=None):
        if conn is not None:
            return conn.execute(query, params or ())
        try:
            with self as own_conn:
                cursor = own_conn.cursor()
                cursor.execute(query, params or ())
                own_conn.commit()
                return cursor
        except sqlite3.Error as e:
            logger.error(f"Query execution failed: {query} with params {params} - {e}")
            raise

    def fetch_one(self, query, params=None, conn=None):
        if conn is not None:
            return conn.execute(query, params or ()).fetchone()
        try:
            with self as own_conn:
                cursor = own_conn.cursor()
                cursor.execute(query, params or ())
                return cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Fetch one failed: {query} with params {params} - {e}")
            raise

    def fetch_all(self, query, params=None, conn=None):
        if conn is not None:
            return conn.execute(query, params or ()).fetchall()
        try:
            with self as own_conn:
                cursor = own_conn.cursor()
                cursor.execute(query, params or ())
                return cursor.fetchall()
        except sqlite3.Error as e:
            logger.error(f"Fetch all failed: {query} with params {params} - {e}")
            raise

    def create_tables(self):
        queries = [
            """
            CREATE TABLE IF NOT EXISTS agreements (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                client_id INTEGER NOT NULL,
                agreement_date TEXT NOT NULL, -- ISO Date
                payment_frequency TEXT NOT NULL CHECK(payment_frequency IN ({frequencies})),
                payment_mode TEXT NOT NULL CHECK(payment_mode IN ({modes})),
                systems INTEGER NOT NULL DEFAULT 0 CHECK(systems >= 0),
                system_rate INTEGER NOT NULL DEFAULT 0 CHECK(system_rate >= 0),
                laptops INTEGER NOT NULL DEFAULT 0 CHECK(laptops >= 0),
                laptop_rate INTEGER NOT NULL DEFAULT 0 CHECK(laptop_rate >= 0),
                printers INTEGER NOT NULL DEFAULT 0 CHECK(printers >= 0),
                printer_rate INTEGER NOT NULL DEFAULT 0 CHECK(printer_rate >= 0),
                servers INTEGER NOT NULL DEFAULT 0 CHECK(servers >= 0),
                server_rate INTEGER NOT NULL DEFAULT 0 CHECK(server_rate >= 0),
                networking_rate INTEGER NOT NULL DEFAULT 0 CHECK(networking_rate >= 0),
                discount INTEGER NOT NULL DEFAULT 0 CHECK(discount >= 0),
                subtotal INTEGER NOT NULL DEFAULT 0,
                total_cost INTEGER NOT NULL DEFAULT 0 CHECK(total_cost >= 0),
                currency TEXT NOT NULL,
                status TEXT NOT NULL CHECK(status IN ({statuses})),
                payment_details TEXT,
                other_details TEXT,
                created_at TEXT
            );
            """.format(
                frequencies=_enum_values(PaymentFrequency),
                modes=_enum_values(PaymentMode),
                statuses=_enum_values(AgreementStatus),
            ),
            """
            CREATE TABLE IF NOT EXISTS payment_schedules (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                agreement_id INTEGER NOT NULL,
                payment_number INTEGER NOT NULL CHECK(payment_number >= 1),
                due_date TEXT NOT NULL, -- ISO Date
                amount INTEGER NOT NULL CHECK(amount >= 0), -- minor units
                status TEXT NOT NULL CHECK(status IN ({statuses})),
                reminder_sent INTEGER NOT NULL DEFAULT 0,
                UNIQUE (agreement_id, payment_number),
                FOREIGN KEY (agreement_id) REFERENCES agreements(id) ON DELETE CASCADE
            );
            """.format(statuses=_enum_values(InstallmentStatus)),
            """
            CREATE TABLE IF NOT EXISTS payment_records (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                installment_id INTEGER NOT NULL UNIQUE, -- one receipt per installment
                agreement_id INTEGER NOT NULL,
                payment_date TEXT NOT NULL,
                amount_paid INTEGER NOT NULL CHECK(amount_paid >= 0),
                payment_method TEXT NOT NULL CHECK(payment_method IN ({methods})),
                reference_number TEXT,
                notes TEXT,
                created_at TEXT,
                FOREIGN KEY (installment_id) REFERENCES payment_schedules(id) ON DELETE RESTRICT,
                FOREIGN KEY (agreement_id) REFERENCES agreements(id) ON DELETE RESTRICT
            );
            """.format(methods=_enum_values(PaymentMethod)),
            """
            CREATE TABLE IF NOT EXISTS account_categories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                type TEXT NOT NULL CHECK(type IN ({types})),
                description TEXT,
                is_active INTEGER NOT NULL DEFAULT 1
            );
            """.format(types=_enum_values(TransactionType)),
            """
            CREATE TABLE IF NOT EXISTS account_transactions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                transaction_date TEXT NOT NULL,
                type TEXT NOT NULL CHECK(type IN ({types})),
                category_id INTEGER NOT NULL,
                amount INTEGER NOT NULL CHECK(amount > 0),
                currency TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                payment_method TEXT NOT NULL CHECK(payment_method IN ({methods})),
                status TEXT NOT NULL CHECK(status IN ({statuses})),
                created_by TEXT NOT NULL,
                approved_by TEXT,
                vendor_customer TEXT,
                invoice_number TEXT,
                receipt_number TEXT,
                reference_number TEXT,
                notes TEXT,
                reference_type TEXT CHECK(reference_type IS NULL OR reference_type IN ({references})),
                reference_id INTEGER,
                created_at TEXT,
                FOREIGN KEY (category_id) REFERENCES account_categories(id) ON DELETE RESTRICT
            );
            """.format(
                types=_enum_values(TransactionType),
                methods=_enum_values(PaymentMethod),
                statuses=_enum_values(TransactionStatus),
                references=_enum_values(ReferenceType),
            ),
            "CREATE INDEX IF NOT EXISTS idx_payment_schedules_due_date ON payment_schedules (status, due_date);",
            "CREATE INDEX IF NOT EXISTS idx_payment_records_agreement ON payment_records (agreement_id);",
            "CREATE INDEX IF NOT EXISTS idx_account_transactions_date ON account_transactions (status, transaction_date);",
        ]

        insert_category_query = "INSERT OR IGNORE INTO account_categories (name, type, description, is_active) VALUES (?, ?, ?, 1)"

        try:
            with self as conn:
                cursor = conn.cursor()
                for query_index, query in enumerate(queries):
                    logger.debug(f"Executing schema statement {query_index + 1}/{len(queries)}")
                    cursor.execute(query)
                logger.info("Database tables checked/created successfully.")

                logger.info("Seeding default account categories if they don't exist...")
                for name, category_type, description in DEFAULT_CATEGORIES:
                    cursor.execute(insert_category_query, (name, category_type, description))
                    if cursor.rowcount > 0:
                        logger.info(f"Default category '{name}' ({category_type}) seeded.")
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to initialize database schema or seed data: {e}", exc_info=True)
            raise


# Example usage (typically called once at application startup)
if __name__ == '__main__':
    import logging.config
    ensure_directories()
    logging.config.dictConfig(LOGGING_CONFIG)

    db_manager = DatabaseManager()
    db_manager.create_tables()
    with db_manager as conn:
        tables = conn.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;").fetchall()
        logger.info(f"Tables found in database ({len(tables)}): {[table[0] for table in tables]}")
