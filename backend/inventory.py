from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

import models


def normalize_expiry(values: Dict) -> Dict:
    """Items marked as non-perishable never keep an expiry date."""
    if values.get("has_no_expiry"):
        values["expiry_date"] = None
    return values


def get_expired_items(db: Session, now: Optional[datetime] = None) -> List[models.InventoryItem]:
    now = now or datetime.now()
    return (
        db.query(models.InventoryItem)
        .filter(
            models.InventoryItem.has_no_expiry == False,  # noqa: E712
            models.InventoryItem.expiry_date.isnot(None),
            models.InventoryItem.expiry_date < now,
        )
        .order_by(models.InventoryItem.expiry_date.asc())
        .all()
    )


def inventory_item_response(item: models.InventoryItem, now: Optional[datetime] = None) -> Dict:
    now = now or datetime.now()
    return {
        "id": item.id,
        "name": item.name,
        "quantity": item.quantity,
        "purchase_date": item.purchase_date,
        "purchase_price": float(item.purchase_price),
        "expiry_date": item.expiry_date,
        "has_no_expiry": item.has_no_expiry,
        "is_expired": not item.has_no_expiry and item.expiry_date is not None and item.expiry_date < now,
        "created_at": item.created_at,
    }
