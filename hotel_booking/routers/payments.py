import logging
from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from hotel_booking.db import get_db
from hotel_booking.models.booking import Booking
from hotel_booking.models.enums import PaymentStatus
from hotel_booking.models.payment import Payment
from hotel_booking.schemas.payment import (
    PaymentCreate,
    PaymentDetailResponse,
    PaymentResponse,
    PaymentUpdate,
)
from hotel_booking.utils.errors import InternalFailure, NotFound, UpstreamFailure
from hotel_booking.utils.payment_system import PaymentSystem, get_payment_system

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/payments",
    tags=["payments"],
)


def _get_payment_or_404(db: Session, payment_id: int, action: str, with_booking: bool = False) -> Payment:
    query = db.query(Payment)
    if with_booking:
        query = query.options(joinedload(Payment.booking))
    try:
        payment = query.filter(Payment.id == payment_id).first()
    except SQLAlchemyError as e:
        logger.error(f"{action} failed for payment {payment_id}: {e}")
        raise InternalFailure(action, str(e))
    if not payment:
        logger.error(f"Payment not found: {payment_id}")
        raise NotFound("Payment")
    return payment


def _ensure_booking_exists(db: Session, booking_id: int, action: str):
    try:
        booking = db.query(Booking.id).filter(Booking.id == booking_id).first()
    except SQLAlchemyError as e:
        logger.error(f"{action} failed while looking up booking {booking_id}: {e}")
        raise InternalFailure(action, str(e))
    if not booking:
        logger.error(f"Booking not found: {booking_id}")
        raise NotFound("Booking")


def _commit(db: Session, payment: Payment, action: str):
    try:
        db.commit()
        db.refresh(payment)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{action} failed: {e}")
        raise InternalFailure(action, str(e))


@router.get("/", response_model=List[PaymentDetailResponse])
def get_payments(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """
    Retrieve payments with the booking each one settles.
    """
    try:
        payments = (
            db.query(Payment)
            .options(joinedload(Payment.booking))
            .offset(skip)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Fetching payments failed: {e}")
        raise InternalFailure("Error fetching payments", str(e))
    logger.debug(f"Retrieved {len(payments)} payments")
    return payments


@router.get("/booking/{booking_id}", response_model=List[PaymentResponse])
def get_payments_for_booking(booking_id: int, db: Session = Depends(get_db)):
    """
    Payments recorded against one booking, oldest first.
    """
    _ensure_booking_exists(db, booking_id, "Error fetching payments")
    try:
        payments = (
            db.query(Payment)
            .filter(Payment.booking_id == booking_id)
            .order_by(Payment.id)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Fetching payments for booking {booking_id} failed: {e}")
        raise InternalFailure("Error fetching payments", str(e))
    logger.debug(f"Retrieved {len(payments)} payments for booking {booking_id}")
    return payments


@router.get("/{payment_id}", response_model=PaymentDetailResponse)
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    return _get_payment_or_404(db, payment_id, "Error fetching payment", with_booking=True)


@router.post("/", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def create_payment(payment: PaymentCreate, db: Session = Depends(get_db)):
    """
    Record a payment for a booking.

    - **bookingId**: booking being paid for.
    - **amount**: amount charged.
    - **paymentMethod**: Credit Card, Debit Card, PayPal or Cash.
    - **status**: Pending (default), Completed or Failed.
    """
    _ensure_booking_exists(db, payment.booking_id, "Error creating payment")

    db_payment = Payment(**payment.model_dump(), payment_date=datetime.now())
    db.add(db_payment)
    _commit(db, db_payment, "Error creating payment")
    logger.debug(f"Created payment {db_payment.id} for booking {db_payment.booking_id}")
    return db_payment


@router.put("/{payment_id}", response_model=PaymentResponse)
def update_payment(payment_id: int, payment_update: PaymentUpdate, db: Session = Depends(get_db)):
    db_payment = _get_payment_or_404(db, payment_id, "Error updating payment")

    update_data = payment_update.model_dump(exclude_unset=True, exclude_none=True)
    if "booking_id" in update_data:
        _ensure_booking_exists(db, update_data["booking_id"], "Error updating payment")

    for key, value in update_data.items():
        setattr(db_payment, key, value)
    _commit(db, db_payment, "Error updating payment")
    logger.debug(f"Updated payment {payment_id}: {sorted(update_data)}")
    return db_payment


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(payment_id: int, db: Session = Depends(get_db)):
    db_payment = _get_payment_or_404(db, payment_id, "Error deleting payment")
    try:
        db.delete(db_payment)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Deleting payment {payment_id} failed: {e}")
        raise InternalFailure("Error deleting payment", str(e))
    logger.debug(f"Deleted payment {payment_id}")
    return None


@router.post("/{payment_id}/process", response_model=PaymentResponse)
def process_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    payment_system: PaymentSystem = Depends(get_payment_system),
):
    """
    Charge a payment through the external payment system.

    On success the payment takes the status reported by the payment system
    (Completed unless told otherwise), its transaction id and the processing
    time. A declined payment answers 400 and is left untouched.
    """
    db_payment = _get_payment_or_404(db, payment_id, "Error processing payment")

    try:
        result = payment_system.process_payment(
            amount=db_payment.amount,
            payment_method=db_payment.payment_method,
            booking_id=db_payment.booking_id,
        )
    except Exception as e:
        logger.error(f"Payment system error for payment {payment_id}: {e}")
        raise InternalFailure("Error processing payment", str(e))

    if not result.success:
        logger.warning(f"Payment {payment_id} declined: {result.error}")
        raise UpstreamFailure("Payment processing failed", result.error)

    db_payment.status = result.status or PaymentStatus.COMPLETED.value
    db_payment.transaction_id = result.transaction_id
    db_payment.processed_at = datetime.now()
    _commit(db, db_payment, "Error processing payment")
    logger.debug(f"Processed payment {payment_id}: {db_payment.transaction_id}")
    return db_payment
