"""
External payment processing collaborator.

Routers never talk to a payment provider directly. They receive a
``PaymentSystem`` through ``get_payment_system``, which reads the instance
built at the composition root (``create_app``) from ``app.state``.
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from hotel_booking.models.enums import PaymentStatus

logger = logging.getLogger(__name__)


@dataclass
class PaymentResult:
    success: bool
    transaction_id: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None


class PaymentSystem:
    """Interface of an external payment processor."""

    def process_payment(self, amount: float, payment_method: str, booking_id: int) -> PaymentResult:
        raise NotImplementedError


class MockPaymentSystem(PaymentSystem):
    """Accepts every payment and issues a synthetic transaction id."""

    def process_payment(self, amount: float, payment_method: str, booking_id: int) -> PaymentResult:
        transaction_id = f"mock-transaction-{int(time.time() * 1000)}"
        logger.debug(
            f"Mock processed {amount} via {payment_method} for booking {booking_id}: {transaction_id}"
        )
        return PaymentResult(
            success=True,
            transaction_id=transaction_id,
            status=PaymentStatus.COMPLETED.value,
        )


def get_payment_system(request: Request) -> PaymentSystem:
    return request.app.state.payment_system
