# service_ledger/data_access/account_categories_repository.py

from typing import List, Optional
import logging

from service_ledger.data_access.base_repository import BaseRepository
from service_ledger.data_access.database_manager import DatabaseManager
from service_ledger.business_logic.entities.account_category_entity import AccountCategoryEntity

logger = logging.getLogger(__name__)

class AccountCategoriesRepository(BaseRepository[AccountCategoryEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=AccountCategoryEntity,
                         table_name="account_categories")

    def get_by_name(self, name: str, conn=None) -> Optional[AccountCategoryEntity]:
        query = f"SELECT * FROM {self._table_name} WHERE name = ? COLLATE NOCASE"
        row = self.db_manager.fetch_one(query, (name,), conn=conn)
        return self._entity_from_row(dict(row)) if row else None

    def get_active(self, conn=None) -> List[AccountCategoryEntity]:
        query = f"SELECT * FROM {self._table_name} WHERE is_active = 1 ORDER BY type, name"
        return self._fetch_entities(query, (), conn=conn)
