from dataclasses import dataclass


# Brand as read from a snapshot of the `brands` collection
@dataclass(frozen=True)
class Brand:
    id: str
    name: str

    @classmethod
    def from_snapshot(cls, item):
        return cls(id=item['id'], name=item.get('name') or '')
