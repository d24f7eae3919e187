from database.category_dao import CategoryDAO
from database.transaction_dao import TransactionDAO
from models.category import Category
from utils.constants import TRANSACTION_TYPES


class CategoryService:
    def __init__(self, category_dao: CategoryDAO, tx_dao: TransactionDAO):
        self._dao = category_dao
        self._tx_dao = tx_dao

    def get_all(self) -> list[Category]:
        return self._dao.get_all()

    def get_by_type(self, type_: str) -> list[Category]:
        return self._dao.get_by_type(type_)

    def create(self, name: str, type_: str, icon: str = "more_horiz",
               color_hex: str = "#888888") -> Category:
        name = name.strip()
        if not name:
            raise ValueError("Category name cannot be empty.")
        if type_ not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid type: {type_}")
        existing = [c.name.lower() for c in self._dao.get_by_type(type_)]
        if name.lower() in existing:
            raise ValueError(f"A {type_} category named '{name}' already exists.")
        return self._dao.create(name, type_, icon, color_hex)

    def update(self, category_id: int, name: str, icon: str, color_hex: str) -> Category:
        """Rename or restyle a category. Its type cannot change."""
        name = name.strip()
        if not name:
            raise ValueError("Category name cannot be empty.")
        current = self._dao.get_by_id(category_id)
        if current is None:
            raise ValueError(f"Category {category_id} does not exist.")
        others = [c for c in self._dao.get_by_type(current.type) if c.id != category_id]
        if any(c.name.lower() == name.lower() for c in others):
            raise ValueError(f"A {current.type} category named '{name}' already exists.")
        return self._dao.update(category_id, name, icon, color_hex)

    def delete(self, category_id: int):
        used = self._tx_dao.count_by_category(category_id)
        if used:
            raise ValueError(
                f"Category is used by {used} transaction{'s' if used != 1 else ''} "
                "and cannot be deleted."
            )
        self._dao.delete(category_id)
