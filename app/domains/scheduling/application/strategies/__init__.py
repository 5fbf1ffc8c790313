"""
Scheduling Booking Strategies
"""

from app.domains.scheduling.application.strategies.booking_strategies import (
    AdvisoryBookingStrategy,
    BookingStrategy,
    BookingStrategyChain,
    DeterministicBookingStrategy,
)

__all__ = [
    "BookingStrategy",
    "AdvisoryBookingStrategy",
    "DeterministicBookingStrategy",
    "BookingStrategyChain",
]
