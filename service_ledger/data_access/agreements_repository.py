# service_ledger/data_access/agreements_repository.py

from typing import List
import logging

from service_ledger.data_access.base_repository import BaseRepository
from service_ledger.data_access.database_manager import DatabaseManager
from service_ledger.business_logic.entities.agreement_entity import AgreementEntity
from service_ledger.constants import AgreementStatus

logger = logging.getLogger(__name__)

class AgreementsRepository(BaseRepository[AgreementEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=AgreementEntity,
                         table_name="agreements")

    def get_by_client_id(self, client_id: int, conn=None) -> List[AgreementEntity]:
        query = f"SELECT * FROM {self._table_name} WHERE client_id = ? ORDER BY agreement_date DESC, id DESC"
        return self._fetch_entities(query, (client_id,), conn=conn)

    def get_by_status(self, status: AgreementStatus, conn=None) -> List[AgreementEntity]:
        query = f"SELECT * FROM {self._table_name} WHERE status = ? ORDER BY agreement_date ASC, id ASC"
        return self._fetch_entities(query, (status.value,), conn=conn)
