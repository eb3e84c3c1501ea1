# src/infrastructure/repositories/train_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import select

from src.infrastructure.db.models import Train


class TrainRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, train_id: str) -> Train | None:
        stmt = select(Train).where(Train.id == train_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_all(self) -> list[Train]:
        stmt = select(Train).order_by(Train.train_name)
        return list(self.db.execute(stmt).scalars().all())

    def search(
        self,
        source: str,
        destination: str,
        class_type: str | None = None,
    ) -> list[Train]:
        """Case-insensitive, unanchored substring match on both ends."""

        stmt = (
            select(Train)
            .where(Train.source.ilike(f"%{source}%"))
            .where(Train.destination.ilike(f"%{destination}%"))
        )
        if class_type:
            stmt = stmt.where(Train.class_type == class_type)

        stmt = stmt.order_by(Train.departure_time)
        return list(self.db.execute(stmt).scalars().all())
