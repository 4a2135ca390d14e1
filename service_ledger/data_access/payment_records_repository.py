# service_ledger/data_access/payment_records_repository.py

from typing import List, Optional
from datetime import date
import logging

from service_ledger.data_access.base_repository import BaseRepository
from service_ledger.data_access.database_manager import DatabaseManager
from service_ledger.business_logic.entities.payment_record_entity import PaymentRecordEntity
from service_ledger.exceptions import StateConflict

logger = logging.getLogger(__name__)

class PaymentRecordsRepository(BaseRepository[PaymentRecordEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=PaymentRecordEntity,
                         table_name="payment_records")

    def update(self, entity, conn=None):
        raise StateConflict("Payment records are immutable.", entity="payment_record", entity_id=entity.id)

    def get_by_installment_id(self, installment_id: int, conn=None) -> Optional[PaymentRecordEntity]:
        query = f"SELECT * FROM {self._table_name} WHERE installment_id = ?"
        row = self.db_manager.fetch_one(query, (installment_id,), conn=conn)
        return self._entity_from_row(dict(row)) if row else None

    def get_by_agreement_id(self, agreement_id: int, conn=None) -> List[PaymentRecordEntity]:
        query = f"SELECT * FROM {self._table_name} WHERE agreement_id = ? ORDER BY payment_date ASC, id ASC"
        return self._fetch_entities(query, (agreement_id,), conn=conn)

    def get_by_date_range(self, start_date: date, end_date: date, conn=None) -> List[PaymentRecordEntity]:
        return self.find_by_criteria(
            {"payment_date": ("BETWEEN", (start_date, end_date))},
            order_by="payment_date ASC, id ASC", conn=conn
        )
