from typing import Optional

from app.domain.errors import PermissionDenied
from app.domain.models import Actor, OrderFilter, OrderFilterKind


def require_admin(actor: Actor, action: str = "perform this action") -> None:
    if not actor.is_admin:
        raise PermissionDenied(f"Admin role required to {action}")


def order_filter_for(
    actor: Actor, phone: Optional[str] = None, order_id: Optional[str] = None
) -> Optional[OrderFilter]:
    """
    Work out which orders ``actor`` may see.

    Admins see everything and customers see their own orders; either may
    narrow the result with an exact phone or order id. Guests must supply one
    of the two and only get exact matches. Returns None when a guest gave
    neither, meaning "nothing to show".
    """
    phone = phone or None
    order_id = order_id or None

    if actor.is_admin:
        return OrderFilter(kind=OrderFilterKind.ALL, phone=phone, order_id=order_id)
    if actor.is_authenticated:
        return OrderFilter(
            kind=OrderFilterKind.BY_USER, value=actor.username, phone=phone, order_id=order_id
        )
    if phone:
        return OrderFilter(kind=OrderFilterKind.BY_PHONE, value=phone, order_id=order_id)
    if order_id:
        return OrderFilter(kind=OrderFilterKind.BY_ID, value=order_id)
    return None
