import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response

from app.domain.models import Actor, Batch, CamelModel, DisplayEntry
from app.interfaces.dependencies import current_actor

router = APIRouter()
logger = logging.getLogger(__name__)

NO_CACHE = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class BatchIn(CamelModel):
    id: int
    name: Optional[str] = None
    plant_date: date
    quantity: int
    stock: int
    ready_for_sale: bool = False


class NewBatchIn(CamelModel):
    name: Optional[str] = None
    plant_date: date
    quantity: int


class ReadyPatch(CamelModel):
    # Omitted means "flip the current value"
    ready_for_sale: Optional[bool] = None


class StockPatch(CamelModel):
    stock: int


@router.get("/batches", response_model=List[Batch])
def list_batches(request: Request, response: Response):
    response.headers.update(NO_CACHE)
    return request.app.state.batch_service.list_batches()


@router.post("/batches")
def save_batches(
    request: Request,
    response: Response,
    body: List[BatchIn],
    actor: Actor = Depends(current_actor),
):
    response.headers.update(NO_CACHE)
    service = request.app.state.batch_service
    batches = [
        Batch(
            id=b.id,
            name=(b.name or "").strip() or service.settings.DEFAULT_BATCH_NAME,
            plant_date=b.plant_date,
            quantity=b.quantity,
            stock=b.stock,
            ready_for_sale=b.ready_for_sale,
        )
        for b in body
    ]
    count = service.replace_all(batches, actor)
    return {"success": True, "message": "Data saved successfully", "count": count}


@router.post("/batches/new", response_model=Batch, status_code=201)
def create_batch(request: Request, body: NewBatchIn, actor: Actor = Depends(current_actor)):
    return request.app.state.batch_service.create_batch(
        body.name, body.plant_date, body.quantity, actor
    )


@router.patch("/batches/{batch_id}/ready", response_model=Batch)
def set_ready(
    request: Request,
    batch_id: int,
    body: Optional[ReadyPatch] = Body(None),
    actor: Actor = Depends(current_actor),
):
    ready = body.ready_for_sale if body else None
    return request.app.state.batch_service.set_ready(batch_id, actor, ready)


@router.patch("/batches/{batch_id}/stock", response_model=Batch)
def set_stock(
    request: Request, batch_id: int, body: StockPatch, actor: Actor = Depends(current_actor)
):
    return request.app.state.batch_service.set_stock(batch_id, body.stock, actor)


@router.delete("/batches/{batch_id}")
def delete_batch(request: Request, batch_id: int, actor: Actor = Depends(current_actor)):
    deleted = request.app.state.batch_service.delete_batch(batch_id, actor)
    return {"success": True, "message": "Batch deleted successfully", "deletedBatch": deleted}


@router.get("/catalog", response_model=List[DisplayEntry])
def catalog(
    request: Request,
    response: Response,
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
):
    response.headers.update(NO_CACHE)
    return request.app.state.batch_service.catalog(search, status, sort)
