from datetime import date, timedelta


def tomorrow() -> date:
    return date.today() + timedelta(days=1)


def yesterday() -> date:
    return date.today() - timedelta(days=1)


def make_passengers(count: int) -> list[dict]:
    return [
        {
            "name": f"Passenger {index}",
            "age": 20 + index,
            "gender": "Female" if index % 2 else "Male",
            "seat_number": None,
        }
        for index in range(1, count + 1)
    ]
