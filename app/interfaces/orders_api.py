import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from app.core.logger import sanitize_dict
from app.domain.models import Actor, CamelModel, Order, OrderSummary
from app.interfaces.batches_api import NO_CACHE
from app.interfaces.dependencies import current_actor, optional_actor

router = APIRouter()
logger = logging.getLogger(__name__)


class OrderIn(CamelModel):
    # Loosely typed on purpose: the order service reports missing or bad fields itself
    batch_id: Any = None
    quantity: Any = None
    phone: Optional[str] = None
    address: Optional[str] = None
    delivery: Optional[str] = None
    payment: Optional[str] = None


class StatusIn(CamelModel):
    status: Optional[str] = None


@router.post("/order")
def submit_order(request: Request, body: OrderIn, actor: Actor = Depends(optional_actor)):
    logger.info(
        f"📨 Order submission from {actor.username or 'guest'}: "
        f"{sanitize_dict(body.model_dump(by_alias=True))}"
    )
    order = request.app.state.order_service.place_order(
        batch_id=body.batch_id,
        quantity=body.quantity,
        phone=body.phone,
        address=body.address,
        delivery=body.delivery,
        payment=body.payment,
        actor=actor,
    )
    return {
        "success": True,
        "orderId": order.id,
        "userType": "authenticated" if actor.is_authenticated else "guest",
        "order": order,
    }


@router.get("/orders", response_model=List[Order])
def list_orders(
    request: Request,
    response: Response,
    phone: Optional[str] = Query(None),
    order_id: Optional[str] = Query(None, alias="orderId"),
    actor: Actor = Depends(optional_actor),
):
    response.headers.update(NO_CACHE)
    return request.app.state.order_service.list_orders(actor, phone, order_id)


@router.get("/orders/summary", response_model=OrderSummary)
def order_summary(
    request: Request,
    phone: Optional[str] = Query(None),
    order_id: Optional[str] = Query(None, alias="orderId"),
    actor: Actor = Depends(optional_actor),
):
    return request.app.state.order_service.summary(actor, phone, order_id)


@router.put("/orders/{order_id}")
def update_order_status(
    request: Request, order_id: str, body: StatusIn, actor: Actor = Depends(current_actor)
):
    order = request.app.state.order_service.update_order_status(order_id, body.status, actor)
    return {"success": True, "order": order}
