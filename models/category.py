from dataclasses import dataclass
from typing import Optional

CATEGORY_TYPES = ("income", "expense")


@dataclass
class Category:
    id: int
    owner_id: Optional[str]     # None → visible to every owner
    name: str
    type: str                   # 'income' | 'expense'
    icon: str = "category"
    color_hex: str = "#007bff"
    is_system: bool = False
    created_at: str = ""
