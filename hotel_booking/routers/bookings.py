from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from hotel_booking.db import get_db
from hotel_booking.models.booking import Booking
from hotel_booking.models.room import Room
from hotel_booking.models.user import User
from hotel_booking.schemas.booking import (
    BookingCreate,
    BookingDetailResponse,
    BookingResponse,
    BookingUpdate,
)
from hotel_booking.utils.errors import InternalFailure, InvalidDateRange, NotFound
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


def _ensure_exists(db: Session, model, object_id: int, resource: str, action: str):
    try:
        found = db.query(model.id).filter(model.id == object_id).first()
    except SQLAlchemyError as e:
        logger.error(f"{action} failed while looking up {resource} {object_id}: {e}")
        raise InternalFailure(action, str(e))
    if not found:
        logger.error(f"{resource} not found: {object_id}")
        raise NotFound(resource)


def _get_booking_or_404(db: Session, booking_id: int, action: str, with_relations: bool = False) -> Booking:
    query = db.query(Booking)
    if with_relations:
        query = query.options(joinedload(Booking.room), joinedload(Booking.user))
    try:
        booking = query.filter(Booking.id == booking_id).first()
    except SQLAlchemyError as e:
        logger.error(f"{action} failed for booking {booking_id}: {e}")
        raise InternalFailure(action, str(e))
    if not booking:
        logger.error(f"Booking not found: {booking_id}")
        raise NotFound("Booking")
    return booking


@router.post(
    "/",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new booking",
    description="Create a booking of a room for a user. The check-out date must be after the check-in date.",
)
def create_booking(
    booking: BookingCreate,
    db: Session = Depends(get_db),
):
    """
    Create a new booking.

    - **userId**: ID of the guest.
    - **roomId**: ID of the room to book.
    - **checkInDate** / **checkOutDate**: stay dates, check-out strictly after check-in.
    - **status**: Pending (default), Confirmed or Cancelled.

    A booking does not change the room's availability status.
    """
    logger.debug(f"Creating booking for user {booking.user_id}, room {booking.room_id}")

    _ensure_exists(db, User, booking.user_id, "User", "Error creating booking")
    _ensure_exists(db, Room, booking.room_id, "Room", "Error creating booking")

    db_booking = Booking(**booking.model_dump())
    try:
        db.add(db_booking)
        db.commit()
        db.refresh(db_booking)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Creating booking failed: {e}")
        raise InternalFailure("Error creating booking", str(e))
    logger.debug(f"Created booking: {db_booking.id}")
    return db_booking


@router.get(
    "/",
    response_model=List[BookingDetailResponse],
    summary="List all bookings",
    description="Retrieve a paginated list of bookings with their room and guest.",
)
def get_bookings(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    """
    Retrieve a list of all bookings.

    - **skip**: Number of bookings to skip.
    - **limit**: Maximum number of bookings to return.
    """
    try:
        bookings = (
            db.query(Booking)
            .options(joinedload(Booking.room), joinedload(Booking.user))
            .offset(skip)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Fetching bookings failed: {e}")
        raise InternalFailure("Error fetching bookings", str(e))
    logger.debug(f"Retrieved {len(bookings)} bookings")
    return bookings


@router.get(
    "/{booking_id}",
    response_model=BookingDetailResponse,
    summary="Get a booking by ID",
    description="Retrieve a specific booking by its ID.",
)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
):
    booking = _get_booking_or_404(db, booking_id, "Error fetching booking", with_relations=True)
    logger.debug(f"Retrieved booking: {booking_id}")
    return booking


@router.put(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Update a booking",
    description="Update a booking's details. Only the supplied fields change.",
)
def update_booking(
    booking_id: int,
    booking_update: BookingUpdate,
    db: Session = Depends(get_db),
):
    """
    Update a booking.

    - **booking_id**: ID of the booking to update.
    - **userId**, **roomId**: (Optional) new references, which must exist.
    - **checkInDate**, **checkOutDate**: (Optional) new dates; the resulting
      stay must still end after it starts.
    - **status**: (Optional) new status.
    """
    db_booking = _get_booking_or_404(db, booking_id, "Error updating booking")

    update_data = booking_update.model_dump(exclude_unset=True, exclude_none=True)

    new_check_in = update_data.get("check_in_date", db_booking.check_in_date)
    new_check_out = update_data.get("check_out_date", db_booking.check_out_date)
    if new_check_out <= new_check_in:
        logger.error(f"Invalid stay for booking {booking_id}: {new_check_in} to {new_check_out}")
        raise InvalidDateRange("checkOutDate must be after checkInDate")

    if "user_id" in update_data:
        _ensure_exists(db, User, update_data["user_id"], "User", "Error updating booking")
    if "room_id" in update_data:
        _ensure_exists(db, Room, update_data["room_id"], "Room", "Error updating booking")

    for key, value in update_data.items():
        setattr(db_booking, key, value)
    try:
        db.commit()
        db.refresh(db_booking)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Updating booking {booking_id} failed: {e}")
        raise InternalFailure("Error updating booking", str(e))
    logger.debug(f"Updated booking: {booking_id}: {sorted(update_data)}")
    return db_booking


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a booking",
    description="Delete a booking together with its payments.",
)
def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
):
    db_booking = _get_booking_or_404(db, booking_id, "Error deleting booking")
    try:
        db.delete(db_booking)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Deleting booking {booking_id} failed: {e}")
        raise InternalFailure("Error deleting booking", str(e))
    logger.debug(f"Deleted booking: {booking_id}")
    return None
