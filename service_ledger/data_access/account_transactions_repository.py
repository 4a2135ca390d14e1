# service_ledger/data_access/account_transactions_repository.py

from typing import List, Optional
from datetime import date
import logging

from service_ledger.data_access.base_repository import BaseRepository
from service_ledger.data_access.database_manager import DatabaseManager
from service_ledger.business_logic.entities.account_transaction_entity import AccountTransactionEntity
from service_ledger.constants import TransactionStatus, TransactionType, ReferenceType

logger = logging.getLogger(__name__)

class AccountTransactionsRepository(BaseRepository[AccountTransactionEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=AccountTransactionEntity,
                         table_name="account_transactions")

    def get_by_date_range(self,
                          start_date: date,
                          end_date: date,
                          status: Optional[TransactionStatus] = None,
                          transaction_type: Optional[TransactionType] = None,
                          category_id: Optional[int] = None,
                          conn=None) -> List[AccountTransactionEntity]:
        criteria = {"transaction_date": ("BETWEEN", (start_date, end_date))}
        if status is not None:
            criteria["status"] = status
        if transaction_type is not None:
            criteria["type"] = transaction_type
        if category_id is not None:
            criteria["category_id"] = category_id
        return self.find_by_criteria(criteria, order_by="transaction_date DESC, id DESC", conn=conn)

    def get_by_reference(self, reference_id: int, reference_type: ReferenceType, conn=None) -> List[AccountTransactionEntity]:
        query = f"SELECT * FROM {self._table_name} WHERE reference_id = ? AND reference_type = ? ORDER BY id ASC"
        return self._fetch_entities(query, (reference_id, reference_type.value), conn=conn)
