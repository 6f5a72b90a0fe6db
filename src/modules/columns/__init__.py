"""Editorial columns."""

from src.modules.columns.models import CINEMA, GUYDE, Column
from src.modules.columns.repository import ColumnRepository
from src.modules.columns.schemas import ColumnInput
from src.modules.columns.service import ColumnService

__all__ = [
    "CINEMA",
    "GUYDE",
    "Column",
    "ColumnInput",
    "ColumnRepository",
    "ColumnService",
]
