from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Transaction:
    id: int
    amount: Decimal
    category_id: int
    type: str               # 'income' | 'expense'
    date: datetime          # user-assigned, may be backdated
    note: str = ""
    created_at: Optional[datetime] = None   # row insertion time
