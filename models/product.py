from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


# Product as read from a snapshot of the `products` collection.
# `brand` holds the brand *name* copied at write time, not a reference:
# renaming a brand later does not touch products already saved.
@dataclass(frozen=True)
class Product:
    id: str
    name: str
    brand: str
    price: Decimal
    unit: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_snapshot(cls, item):
        created_at = item.get('createdAt')
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        price = item.get('price')
        return cls(
            id=item['id'],
            name=item.get('name') or '',
            brand=item.get('brand') or '',
            price=Decimal(str(price)) if price is not None else Decimal('0'),
            unit=item.get('unit') or '',
            created_at=created_at,
        )

    def matches(self, term):
        term = term.lower()
        return term in self.name.lower() or term in self.brand.lower()

    def price_text(self):
        """Price rendered back to the text a user would type."""
        return format(self.price.normalize(), 'f')
