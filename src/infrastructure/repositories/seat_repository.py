# src/infrastructure/repositories/seat_repository.py

import logging

from sqlalchemy.orm import Session
from sqlalchemy import select

from src.infrastructure.db.models import Train
from src.domain.exceptions import InsufficientInventoryError, NotFoundError

logger = logging.getLogger(__name__)


class SeatRepository:
    """Inventory ledger: the per-train available seat counter."""

    def __init__(self, db: Session):
        self.db = db

    def lock_inventory(self, train_id: str) -> Train:
        """
        SELECT ... FOR UPDATE
        Prevents race conditions.
        """

        # populate_existing: a Train read earlier in this session must not
        # shadow the row we just locked.
        stmt = (
            select(Train)
            .where(Train.id == train_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

        train = self.db.execute(stmt).scalar_one_or_none()

        if not train:
            raise NotFoundError("Train not found")

        return train

    def reserve(
        self,
        train_id: str,
        seat_count: int,
    ) -> int:
        """Decrement only if enough seats remain; returns the new count."""

        train = self.lock_inventory(train_id)

        if seat_count > train.available_seats:
            raise InsufficientInventoryError(train.available_seats)

        train.available_seats -= seat_count
        self.db.flush()
        return train.available_seats

    def release(
        self,
        train_id: str,
        seat_count: int,
    ) -> int:
        """Increment, never above the train's total capacity."""

        train = self.lock_inventory(train_id)
        restored = train.available_seats + seat_count

        if restored > train.total_seats:
            logger.warning(
                "Seat release clamped at capacity. train_id=%s requested=%s available=%s total=%s",
                train_id,
                seat_count,
                train.available_seats,
                train.total_seats,
            )
            restored = train.total_seats

        train.available_seats = restored
        self.db.flush()
        return train.available_seats
