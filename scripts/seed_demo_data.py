from datetime import time
from decimal import Decimal

from sqlalchemy import delete, select

from src.infrastructure.db.models import Base, RouteStop, Station, Train
from src.infrastructure.db.session import SessionLocal, engine


STATIONS = [
    {"station_name": "New Delhi", "station_code": "NDLS", "city": "Delhi"},
    {"station_name": "Kanpur Central", "station_code": "CNB", "city": "Kanpur"},
    {"station_name": "Prayagraj Junction", "station_code": "PRYJ", "city": "Prayagraj"},
    {"station_name": "Howrah Junction", "station_code": "HWH", "city": "Kolkata"},
    {"station_name": "Mumbai Central", "station_code": "MMCT", "city": "Mumbai"},
    {"station_name": "Vadodara Junction", "station_code": "BRC", "city": "Vadodara"},
]

TRAINS = [
    {
        "train_name": "Howrah Rajdhani",
        "train_number": "12302",
        "source": "New Delhi",
        "destination": "Howrah Junction",
        "departure_time": time(16, 50),
        "arrival_time": time(9, 55),
        "duration": "17h 05m",
        "class_type": "AC 3 Tier",
        "fare": Decimal("2850.00"),
        "total_seats": 72,
        "route": [("NDLS", None, time(16, 50)), ("CNB", time(21, 30), time(21, 35)),
                  ("PRYJ", time(23, 40), time(23, 45)), ("HWH", time(9, 55), None)],
    },
    {
        "train_name": "Mumbai Rajdhani",
        "train_number": "12952",
        "source": "New Delhi",
        "destination": "Mumbai Central",
        "departure_time": time(16, 55),
        "arrival_time": time(8, 35),
        "duration": "15h 40m",
        "class_type": "AC 2 Tier",
        "fare": Decimal("3900.00"),
        "total_seats": 48,
        "route": [("NDLS", None, time(16, 55)), ("BRC", time(3, 48), time(3, 58)),
                  ("MMCT", time(8, 35), None)],
    },
    {
        "train_name": "Prayagraj Express",
        "train_number": "12418",
        "source": "New Delhi",
        "destination": "Prayagraj Junction",
        "departure_time": time(22, 10),
        "arrival_time": time(6, 45),
        "duration": "8h 35m",
        "class_type": "Sleeper",
        "fare": Decimal("455.00"),
        "total_seats": 80,
        "route": [("NDLS", None, time(22, 10)), ("CNB", time(4, 0), time(4, 5)),
                  ("PRYJ", time(6, 45), None)],
    },
]


def seed_stations(db) -> dict[str, Station]:
    stations = {}
    for item in STATIONS:
        station = db.execute(
            select(Station).where(Station.station_code == item["station_code"])
        ).scalar_one_or_none()
        if station:
            station.station_name = item["station_name"]
            station.city = item["city"]
        else:
            station = Station(**item)
            db.add(station)
        stations[item["station_code"]] = station

    db.flush()
    return stations


def seed_trains(db, stations: dict[str, Station]) -> None:
    for item in TRAINS:
        fields = {key: value for key, value in item.items() if key != "route"}
        train = db.execute(
            select(Train).where(Train.train_number == item["train_number"])
        ).scalar_one_or_none()
        if train:
            # Seats held by existing bookings stay held across a re-seed.
            booked = train.total_seats - train.available_seats
            if item["total_seats"] < booked:
                raise ValueError(
                    f"Train {item['train_number']} has {booked} seats booked; "
                    f"cannot shrink capacity to {item['total_seats']}"
                )
            db.execute(delete(RouteStop).where(RouteStop.train_id == train.id))
            for key, value in fields.items():
                setattr(train, key, value)
            train.available_seats = item["total_seats"] - booked
        else:
            train = Train(**fields, available_seats=item["total_seats"])
            db.add(train)
            db.flush()

        for stop_number, (code, arrival, departure) in enumerate(item["route"], start=1):
            db.add(
                RouteStop(
                    train_id=train.id,
                    station_id=stations[code].id,
                    stop_number=stop_number,
                    arrival_time=arrival,
                    departure_time=departure,
                )
            )


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        stations = seed_stations(db)
        seed_trains(db, stations)
        db.commit()
        print(f"Seed complete: {len(STATIONS)} stations, {len(TRAINS)} trains with routes.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
