# service_ledger/business_logic/account_category_manager.py

from typing import Optional, List, Union
import logging

from service_ledger.business_logic.entities.account_category_entity import AccountCategoryEntity
from service_ledger.data_access.account_categories_repository import AccountCategoriesRepository
from service_ledger.constants import TransactionType
from service_ledger.exceptions import ValidationError, NotFound

logger = logging.getLogger(__name__)


def parse_transaction_type(value: Union[TransactionType, str]) -> TransactionType:
    if isinstance(value, TransactionType):
        return value
    try:
        return TransactionType(value)
    except ValueError:
        raise ValidationError(f"Unknown transaction type: {value!r}. Expected 'income' or 'expense'.")


class AccountCategoryManager:
    def __init__(self, categories_repository: AccountCategoriesRepository):
        if categories_repository is None:
            raise ValueError("categories_repository cannot be None")
        self.categories_repository = categories_repository

    def create_category(self,
                        name: str,
                        category_type: Union[TransactionType, str],
                        description: Optional[str] = None) -> AccountCategoryEntity:
        if not name or not name.strip():
            raise ValidationError("Category name cannot be empty.", entity="account_category")
        name = name.strip()
        category_type = parse_transaction_type(category_type)

        if self.categories_repository.get_by_name(name):
            raise ValidationError(f"A category named '{name}' already exists.", entity="account_category")

        category = self.categories_repository.add(
            AccountCategoryEntity(name=name, type=category_type, description=description)
        )
        logger.info(f"Account category '{name}' ({category_type.value}) created with ID {category.id}.")
        return category

    def get_category(self, category_id: int, conn=None) -> AccountCategoryEntity:
        category = self.categories_repository.get_by_id(category_id, conn=conn)
        if category is None:
            raise NotFound(f"Account category {category_id} not found.", entity="account_category", entity_id=category_id)
        return category

    def get_category_by_name(self, name: str, conn=None) -> Optional[AccountCategoryEntity]:
        return self.categories_repository.get_by_name(name, conn=conn)

    def list_categories(self,
                        active_only: bool = True,
                        category_type: Optional[Union[TransactionType, str]] = None) -> List[AccountCategoryEntity]:
        categories = self.categories_repository.get_active() if active_only \
            else self.categories_repository.get_all(order_by="type, name")
        if category_type is not None:
            category_type = parse_transaction_type(category_type)
            categories = [c for c in categories if c.type == category_type]
        return categories

    def deactivate_category(self, category_id: int) -> AccountCategoryEntity:
        """Hides a category from new entries; transactions already filed under it are untouched."""
        category = self.get_category(category_id)
        if category.is_active:
            category.is_active = False
            self.categories_repository.update(category)
            logger.info(f"Account category ID {category_id} ('{category.name}') deactivated.")
        return category
