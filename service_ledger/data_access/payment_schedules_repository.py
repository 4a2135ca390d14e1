# service_ledger/data_access/payment_schedules_repository.py

from typing import List, Optional
from datetime import date
import logging

from service_ledger.data_access.base_repository import BaseRepository
from service_ledger.data_access.database_manager import DatabaseManager
from service_ledger.business_logic.entities.installment_entity import InstallmentEntity
from service_ledger.constants import InstallmentStatus, AgreementStatus

logger = logging.getLogger(__name__)

class PaymentSchedulesRepository(BaseRepository[InstallmentEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=InstallmentEntity,
                         table_name="payment_schedules")

    def get_by_agreement_id(self, agreement_id: int, conn=None) -> List[InstallmentEntity]:
        query = f"SELECT * FROM {self._table_name} WHERE agreement_id = ? ORDER BY payment_number ASC"
        return self._fetch_entities(query, (agreement_id,), conn=conn)

    def count_paid_by_agreement_id(self, agreement_id: int, conn=None) -> int:
        query = f"SELECT COUNT(*) FROM {self._table_name} WHERE agreement_id = ? AND status = ?"
        row = self.db_manager.fetch_one(query, (agreement_id, InstallmentStatus.PAID.value), conn=conn)
        return row[0] if row else 0

    def delete_pending_by_agreement_id(self, agreement_id: int, conn=None) -> int:
        query = f"DELETE FROM {self._table_name} WHERE agreement_id = ? AND status = ?"
        cursor = self.db_manager.execute_query(query, (agreement_id, InstallmentStatus.PENDING.value), conn=conn)
        logger.debug(f"Deleted {cursor.rowcount} pending installments of agreement ID {agreement_id}.")
        return cursor.rowcount

    def get_pending_in_range(self,
                             start_date: Optional[date] = None,
                             end_date: Optional[date] = None,
                             conn=None) -> List[InstallmentEntity]:
        """
        Pending installments of active agreements with due_date within the
        inclusive range; either bound may be omitted.
        """
        query = (f"SELECT s.* FROM {self._table_name} s "
                 f"JOIN agreements a ON a.id = s.agreement_id "
                 f"WHERE s.status = ? AND a.status = ?")
        params = [InstallmentStatus.PENDING.value, AgreementStatus.ACTIVE.value]
        if start_date is not None:
            query += " AND s.due_date >= ?"
            params.append(start_date.isoformat())
        if end_date is not None:
            query += " AND s.due_date <= ?"
            params.append(end_date.isoformat())
        query += " ORDER BY s.due_date ASC, s.agreement_id ASC, s.payment_number ASC"
        return self._fetch_entities(query, tuple(params), conn=conn)
