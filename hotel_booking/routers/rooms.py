import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
from hotel_booking.db import get_db
from hotel_booking.models.room import Room
from hotel_booking.models.user import User
from hotel_booking.schemas.room import (
    RoomAmenitiesResponse,
    RoomAvailabilityResponse,
    RoomCreate,
    RoomResponse,
    RoomUpdate,
)
from hotel_booking.utils.auth import get_current_admin
from hotel_booking.utils.availability import (
    build_room_filters,
    filter_by_amenities,
    find_available_rooms,
    parse_amenities,
)
from hotel_booking.utils.errors import (
    DuplicateRoomNumber,
    InternalFailure,
    MissingParameter,
    NotFound,
    is_unique_violation,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/rooms",
    tags=["rooms"],
)

# Fields a partial update may explicitly clear.
NULLABLE_FIELDS = {"description", "amenities", "photo_gallery"}


def _get_room_or_404(db: Session, room_id: int, action: str) -> Room:
    try:
        room = db.query(Room).filter(Room.id == room_id).first()
    except SQLAlchemyError as e:
        logger.error(f"{action} failed for room {room_id}: {e}")
        raise InternalFailure(action, str(e))
    if not room:
        logger.error(f"Room not found: {room_id}")
        raise NotFound("Room")
    return room


@router.get("/", response_model=List[RoomResponse])
def get_rooms(
    room_type: Optional[str] = Query(None, alias="roomType"),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    max_guests: Optional[str] = Query(None, alias="maxGuests"),
    availability_status: Optional[str] = Query(None, alias="availabilityStatus"),
    amenities: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Retrieve rooms, optionally filtered.

    - **roomType**: Single, Double or Suite.
    - **minPrice** / **maxPrice**: price per night bounds (inclusive).
    - **maxGuests**: minimum guest capacity.
    - **availabilityStatus**: Available, Booked or Maintenance.
    - **amenities**: comma-separated list; a room must have all of them.
    """
    criteria = build_room_filters(
        room_type=room_type,
        min_price=min_price,
        max_price=max_price,
        max_guests=max_guests,
        availability_status=availability_status,
    )
    try:
        rooms = db.query(Room).filter(*criteria).all()
    except SQLAlchemyError as e:
        logger.error(f"Fetching rooms failed: {e}")
        raise InternalFailure("Error fetching rooms", str(e))

    requested = parse_amenities(amenities)
    if requested:
        rooms = filter_by_amenities(rooms, requested)
    logger.debug(f"Retrieved {len(rooms)} rooms")
    return rooms


@router.get("/availability", response_model=RoomAvailabilityResponse)
def check_room_availability(
    check_in_date: Optional[str] = Query(None, alias="checkInDate"),
    check_out_date: Optional[str] = Query(None, alias="checkOutDate"),
    room_type: Optional[str] = Query(None, alias="roomType"),
    max_guests: Optional[str] = Query(None, alias="maxGuests"),
    db: Session = Depends(get_db),
):
    """
    List rooms that can be booked for the stay [checkInDate, checkOutDate).

    Rooms under maintenance or marked as booked are never returned, and
    neither are rooms with a confirmed booking overlapping the stay.
    """
    rooms = find_available_rooms(
        db,
        check_in_date,
        check_out_date,
        room_type=room_type,
        max_guests=max_guests,
    )
    logger.debug(f"{len(rooms)} rooms available from {check_in_date} to {check_out_date}")
    return RoomAvailabilityResponse(available_rooms=rooms, total_available=len(rooms))


@router.get("/amenities", response_model=RoomAmenitiesResponse)
def get_rooms_by_amenities(
    amenities: Optional[str] = Query(None),
    room_type: Optional[str] = Query(None, alias="roomType"),
    db: Session = Depends(get_db),
):
    """
    Retrieve rooms having every amenity in the comma-separated **amenities** list.
    """
    requested = parse_amenities(amenities)
    if not requested:
        logger.error("Amenities search without amenities")
        raise MissingParameter("amenities query parameter is required")

    criteria = build_room_filters(room_type=room_type)
    try:
        rooms = db.query(Room).filter(*criteria).all()
    except SQLAlchemyError as e:
        logger.error(f"Fetching rooms by amenities failed: {e}")
        raise InternalFailure("Error fetching rooms by amenities", str(e))

    matched = filter_by_amenities(rooms, requested)
    logger.debug(f"{len(matched)} rooms have amenities {requested}")
    return RoomAmenitiesResponse(
        rooms=matched,
        total_rooms=len(matched),
        requested_amenities=requested,
    )


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(room_id: int, db: Session = Depends(get_db)):
    """
    Retrieve a specific room by ID.
    """
    return _get_room_or_404(db, room_id, "Error fetching room")


@router.post("/", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    room: RoomCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    """
    Create a new room.
    Requires an admin token.
    """
    db_room = Room(**room.model_dump())
    try:
        db.add(db_room)
        db.commit()
        db.refresh(db_room)
    except IntegrityError as e:
        db.rollback()
        if is_unique_violation(e, "room_number"):
            logger.error(f"Duplicate room number: {room.room_number}")
            raise DuplicateRoomNumber()
        logger.error(f"Creating room failed: {e}")
        raise InternalFailure("Error creating room", str(e))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Creating room failed: {e}")
        raise InternalFailure("Error creating room", str(e))
    logger.debug(f"Created room {db_room.id} ({db_room.room_number}) by {current_user.email}")
    return db_room


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: int,
    room_update: RoomUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    """
    Update a room's details. Only the supplied fields change.
    Requires an admin token.
    """
    db_room = _get_room_or_404(db, room_id, "Error updating room")

    update_data = {
        key: value
        for key, value in room_update.model_dump(exclude_unset=True).items()
        if value is not None or key in NULLABLE_FIELDS
    }
    for key, value in update_data.items():
        setattr(db_room, key, value)

    try:
        db.commit()
        db.refresh(db_room)
    except IntegrityError as e:
        db.rollback()
        if is_unique_violation(e, "room_number"):
            logger.error(f"Duplicate room number: {room_update.room_number}")
            raise DuplicateRoomNumber()
        logger.error(f"Updating room {room_id} failed: {e}")
        raise InternalFailure("Error updating room", str(e))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Updating room {room_id} failed: {e}")
        raise InternalFailure("Error updating room", str(e))
    logger.debug(f"Updated room {room_id}: {sorted(update_data)}")
    return db_room


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    """
    Delete a room together with its bookings.
    Requires an admin token.
    """
    db_room = _get_room_or_404(db, room_id, "Error deleting room")
    try:
        db.delete(db_room)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Deleting room {room_id} failed: {e}")
        raise InternalFailure("Error deleting room", str(e))
    logger.debug(f"Deleted room {room_id}")
    return None
