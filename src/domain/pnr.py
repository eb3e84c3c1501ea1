import secrets

PNR_LOWER_BOUND = 1_000_000_000
PNR_UPPER_BOUND = 10_000_000_000


def generate_pnr() -> str:
    """
    Draw a 10-digit PNR uniformly from [1_000_000_000, 10_000_000_000).
    Uniqueness is not checked here; the bookings table rejects duplicates.
    """
    return str(PNR_LOWER_BOUND + secrets.randbelow(PNR_UPPER_BOUND - PNR_LOWER_BOUND))
