import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hotel_booking.models.booking import Booking
from hotel_booking.models.enums import BookingStatus, RoomStatus
from hotel_booking.models.room import Room
from hotel_booking.utils.errors import InternalFailure, InvalidDateRange, MissingParameter

logger = logging.getLogger(__name__)

Amenities = Union[List[str], dict]


def _is_absent(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


def _parse_float(name: str, value: Optional[str]) -> Optional[float]:
    if _is_absent(value):
        return None
    try:
        parsed = float(value)
    except ValueError:
        logger.warning(f"Ignoring unparseable {name}: {value!r}")
        return None
    if math.isnan(parsed):
        logger.warning(f"Ignoring NaN {name}: {value!r}")
        return None
    return parsed


def _parse_int(name: str, value: Optional[str]) -> Optional[int]:
    # "2.5" counts as 2 guests
    parsed = _parse_float(name, value)
    if parsed is None:
        return None
    if math.isinf(parsed):
        logger.warning(f"Ignoring infinite {name}: {value!r}")
        return None
    return math.floor(parsed)


def build_room_filters(
    room_type: Optional[str] = None,
    min_price: Optional[str] = None,
    max_price: Optional[str] = None,
    max_guests: Optional[str] = None,
    availability_status: Optional[str] = None,
) -> list:
    """
    Translate raw query strings into SQLAlchemy criteria for Room.

    Only None and blank strings are treated as absent, so "0" is a real bound.
    Numbers that do not parse impose no constraint. Unknown room types or
    statuses are passed through and match nothing.
    """
    criteria = []
    if not _is_absent(room_type):
        criteria.append(Room.room_type == room_type)

    lower = _parse_float("minPrice", min_price)
    if lower is not None:
        criteria.append(Room.price_per_night >= lower)
    upper = _parse_float("maxPrice", max_price)
    if upper is not None:
        criteria.append(Room.price_per_night <= upper)

    guests = _parse_int("maxGuests", max_guests)
    if guests is not None:
        criteria.append(Room.max_guests >= guests)

    if not _is_absent(availability_status):
        criteria.append(Room.availability_status == availability_status)
    return criteria


def parse_amenities(raw: Optional[str]) -> List[str]:
    """Split a comma-separated amenities string into trimmed, non-empty tokens."""
    if raw is None:
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


def amenities_match(amenities: Optional[Amenities], requested: Iterable[str]) -> bool:
    """
    ALL-match of requested names against a room's amenities.

    A list matches by membership, a mapping only where the value is exactly
    True. Missing amenities never match.
    """
    if amenities is None:
        return False
    if isinstance(amenities, list):
        return all(name in amenities for name in requested)
    if isinstance(amenities, dict):
        return all(amenities.get(name) is True for name in requested)
    return False


def filter_by_amenities(rooms: Iterable[Room], requested: List[str]) -> List[Room]:
    return [room for room in rooms if amenities_match(room.amenities, requested)]


def parse_stay_date(value: str) -> datetime:
    """
    Parse YYYY-MM-DD or a full ISO-8601 timestamp into a naive UTC datetime.

    A plain date is midnight of that day.
    """
    try:
        return datetime.combine(date.fromisoformat(value), time.min)
    except ValueError:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def stay_nights(start: datetime, end: datetime) -> Tuple[date, date]:
    """
    Widen [start, end) to whole days: a stay that ends part way through a
    day occupies that day too.
    """
    last = end.date()
    if end.time() != time.min:
        last += timedelta(days=1)
    return start.date(), last


def find_available_rooms(
    db: Session,
    check_in: Optional[str],
    check_out: Optional[str],
    room_type: Optional[str] = None,
    max_guests: Optional[str] = None,
) -> List[Room]:
    """
    Rooms that are administratively Available and have no Confirmed booking
    overlapping [check_in, check_out).
    """
    if _is_absent(check_in) or _is_absent(check_out):
        raise MissingParameter("Both checkInDate and checkOutDate are required")

    try:
        start = parse_stay_date(check_in)
        end = parse_stay_date(check_out)
    except ValueError:
        raise InvalidDateRange("checkInDate and checkOutDate must be valid dates (YYYY-MM-DD)")

    if end <= start:
        raise InvalidDateRange("checkOutDate must be after checkInDate")
    start, end = stay_nights(start, end)

    criteria = build_room_filters(room_type=room_type, max_guests=max_guests)
    criteria.append(Room.availability_status != RoomStatus.MAINTENANCE.value)

    try:
        rooms = db.query(Room).filter(*criteria).all()
        bookings = db.query(Booking).filter(
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.overlaps(start, end),
        ).all()
    except SQLAlchemyError as e:
        logger.error(f"Availability query failed: {e}")
        raise InternalFailure("Error checking room availability", str(e))

    booked_room_ids = {booking.room_id for booking in bookings}
    logger.debug(f"Rooms booked between {start} and {end}: {sorted(booked_room_ids)}")

    return [
        room
        for room in rooms
        if room.id not in booked_room_ids
        and room.availability_status == RoomStatus.AVAILABLE.value
    ]
