from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    type: str               # 'income' | 'expense'
    icon: str = "more_horiz"
    color_hex: str = "#888888"
    is_default: bool = False
    created_at: Optional[datetime] = None
