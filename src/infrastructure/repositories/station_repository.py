# src/infrastructure/repositories/station_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import or_, select

from src.infrastructure.db.models import Station

STATION_SEARCH_LIMIT = 20


class StationRepository:

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> list[Station]:
        stmt = select(Station).order_by(Station.station_name)
        return list(self.db.execute(stmt).scalars().all())

    def search(self, query: str) -> list[Station]:
        pattern = f"%{query}%"
        stmt = (
            select(Station)
            .where(
                or_(
                    Station.station_name.ilike(pattern),
                    Station.station_code.ilike(pattern),
                    Station.city.ilike(pattern),
                )
            )
            .order_by(Station.station_name)
            .limit(STATION_SEARCH_LIMIT)
        )
        return list(self.db.execute(stmt).scalars().all())
