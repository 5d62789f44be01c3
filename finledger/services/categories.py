"""
Category presentation lookup: one icon and one color per Category.

Clients render transaction rows and budget bars from this table instead of
branching on category names.
"""
from typing import Dict, NamedTuple

from finledger.models import Category


class CategoryStyle(NamedTuple):
     icon: str
     color: str


DEFAULT_STYLE = CategoryStyle(icon="💳", color="#6b7280")

CATEGORY_STYLES: Dict[Category, CategoryStyle] = {
     Category.FOOD: CategoryStyle(icon="🛒", color="#ef4444"),
     Category.TRANSPORT: CategoryStyle(icon="⛽", color="#f97316"),
     Category.ENTERTAINMENT: CategoryStyle(icon="🎬", color="#eab308"),
     Category.SHOPPING: CategoryStyle(icon="🛍️", color="#22c55e"),
     Category.UTILITIES: CategoryStyle(icon="💡", color="#3b82f6"),
     Category.HEALTHCARE: CategoryStyle(icon="🏥", color="#8b5cf6"),
     Category.INCOME: CategoryStyle(icon="💰", color="#16a34a"),
     Category.TRANSFER: CategoryStyle(icon="💸", color="#0ea5e9"),
     Category.BILLS: CategoryStyle(icon="🧾", color="#a855f7"),
     Category.REQUEST: CategoryStyle(icon="📥", color="#14b8a6"),
}


def style_for(category: Category) -> CategoryStyle:
     return CATEGORY_STYLES.get(category, DEFAULT_STYLE)
