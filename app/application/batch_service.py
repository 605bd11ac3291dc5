import logging
from datetime import date, datetime
from typing import Callable, List, Optional

import pytz

from app.core.config import Settings
from app.domain.access import require_admin
from app.domain.catalog import filter_and_sort, visible_catalog
from app.domain.errors import BatchNotFound, ValidationError
from app.domain.inventory import MAX_STORED_INT
from app.domain.models import Actor, Batch, DisplayEntry
from app.interfaces.IInventoryRepository import IInventoryRepository

logger = logging.getLogger(__name__)


class BatchService:
    """Admin inventory management plus the customer-facing catalog."""

    def __init__(
        self,
        batch_repo: IInventoryRepository,
        settings: Settings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.batch_repo = batch_repo
        self.settings = settings
        self.clock = clock or self._local_now

    def _local_now(self) -> datetime:
        # Plant dates are calendar dates in the nursery's timezone
        return datetime.now(pytz.timezone(self.settings.TIMEZONE))

    # --- Reads ---

    def list_batches(self) -> List[Batch]:
        return self.batch_repo.list_batches()

    def get_batch(self, batch_id: int) -> Batch:
        batch = self.batch_repo.get_batch(batch_id)
        if batch is None:
            raise BatchNotFound(batch_id)
        return batch

    def catalog(
        self,
        search_term: Optional[str] = None,
        status_filter: Optional[str] = None,
        sort_key: Optional[str] = None,
    ) -> List[DisplayEntry]:
        batches = self.batch_repo.list_batches()
        now = self.clock()
        if not search_term and status_filter in (None, "", "all") and not sort_key:
            return visible_catalog(batches, now, self.settings.MATURATION_DAYS)
        return filter_and_sort(
            batches, search_term, status_filter, sort_key, now, self.settings.MATURATION_DAYS
        )

    # --- Admin writes ---

    def replace_all(self, batches: List[Batch], actor: Actor) -> int:
        require_admin(actor, "save batches")
        count = self.batch_repo.replace_all_batches(batches)
        logger.info(f"✅ {actor.username} saved {count} batches")
        return count

    def create_batch(self, name: Optional[str], plant_date: date, quantity, actor: Actor) -> Batch:
        require_admin(actor, "create batches")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("'quantity' must be a positive integer")
        if quantity > MAX_STORED_INT:
            raise ValidationError(f"'quantity' must not exceed {MAX_STORED_INT}")
        if plant_date is None:
            raise ValidationError("'plantDate' is required")
        name = (name or "").strip() or self.settings.DEFAULT_BATCH_NAME

        batch = self.batch_repo.create_batch(name, plant_date, quantity)
        logger.info(f"🌱 Batch {batch.id} created: {batch.quantity}x {batch.name}, planted {batch.plant_date}")
        return batch

    def set_ready(self, batch_id: int, actor: Actor, ready: Optional[bool] = None) -> Batch:
        """Set readiness, or flip it when ``ready`` is None."""
        require_admin(actor, "change batch readiness")
        with self.batch_repo.transaction() as tx:
            batch = tx.get_batch(batch_id)
            if batch is None:
                raise BatchNotFound(batch_id)
            target = (not batch.ready_for_sale) if ready is None else ready
            updated = tx.set_ready_for_sale(batch_id, target)
        logger.info(f"🔁 Batch {batch_id} readyForSale={updated.ready_for_sale}")
        return updated

    def set_stock(self, batch_id: int, stock, actor: Actor) -> Batch:
        require_admin(actor, "adjust stock")
        if isinstance(stock, bool) or not isinstance(stock, int):
            raise ValidationError("'stock' must be an integer")
        updated = self.batch_repo.set_stock(batch_id, stock)
        if updated is None:
            raise BatchNotFound(batch_id)
        logger.info(f"📦 Batch {batch_id} stock set to {stock}")
        return updated

    def delete_batch(self, batch_id: int, actor: Actor) -> Batch:
        require_admin(actor, "delete batches")
        deleted = self.batch_repo.delete_batch(batch_id)
        if deleted is None:
            raise BatchNotFound(batch_id)
        logger.info(f"🗑️ Batch {batch_id} deleted")
        return deleted
