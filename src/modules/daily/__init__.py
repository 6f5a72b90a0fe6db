"""Daily items: tips, things, positions and videos."""

from src.modules.daily.models import (
    DailyDose,
    DailyItem,
    DailyVideo,
    Position,
    Thing,
    ThingCategory,
    Tip,
)
from src.modules.daily.repository import DailyItemRepository, ThingCategoryRepository
from src.modules.daily.schemas import (
    DailyItemInput,
    DailyVideoInput,
    PositionInput,
    ThingCategoryInput,
    ThingInput,
    TipInput,
)
from src.modules.daily.service import (
    DailyDoseService,
    DailyItemService,
    DailyVideoService,
    PositionService,
    ThingCategoryService,
    ThingService,
    TipService,
)

__all__ = [
    "DailyDose",
    "DailyDoseService",
    "DailyItem",
    "DailyItemInput",
    "DailyItemRepository",
    "DailyItemService",
    "DailyVideo",
    "DailyVideoInput",
    "DailyVideoService",
    "Position",
    "PositionInput",
    "PositionService",
    "Thing",
    "ThingCategory",
    "ThingCategoryInput",
    "ThingCategoryRepository",
    "ThingCategoryService",
    "ThingInput",
    "ThingService",
    "Tip",
    "TipInput",
    "TipService",
]
