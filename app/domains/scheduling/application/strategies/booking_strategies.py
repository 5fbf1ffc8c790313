"""
Booking strategies with fallback chain.

The advisory strategy books an externally suggested slot when the suggestion
is trustworthy enough; the deterministic strategy books exactly what was
requested and always runs last.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import TYPE_CHECKING

from app.domains.scheduling.application.dto import (
    VALIDATION_ERROR,
    BookAppointmentRequest,
    SchedulingResult,
)
from app.domains.scheduling.application.ports import ISlotAdvisor
from app.domains.scheduling.domain.value_objects import BookingSource, SchedulingPolicy

if TYPE_CHECKING:
    from app.domains.scheduling.application.services.availability_service import AvailabilityService


class BookingStrategy(ABC):
    """
    Abstract base class for booking strategies.

    ``attempt`` returns None when the strategy declines, letting the chain
    move on to the next strategy.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def strategy_name(self) -> str:
        pass

    @property
    def is_authoritative(self) -> bool:
        """Authoritative strategies never decline and must close the chain."""
        return False

    @abstractmethod
    async def attempt(self, service: "AvailabilityService", request: BookAppointmentRequest) -> SchedulingResult | None:
        """
        Try to book.

        Args:
            service: Facade providing the validated booking path
            request: Original booking request

        Returns:
            Booking result, or None when declining
        """
        pass


class AdvisoryBookingStrategy(BookingStrategy):
    """Books the slot suggested by an ``ISlotAdvisor`` when confidence is high enough."""

    def __init__(self, advisor: ISlotAdvisor | None, policy: SchedulingPolicy | None = None):
        super().__init__()
        self.advisor = advisor
        self.policy = policy or SchedulingPolicy()

    @property
    def strategy_name(self) -> str:
        return "advisory"

    async def attempt(self, service: "AvailabilityService", request: BookAppointmentRequest) -> SchedulingResult | None:
        if self.advisor is None or not self.policy.advisory_enabled:
            return None

        try:
            suggestion = await self.advisor.suggest(
                doctor_id=request.doctor_id,
                patient_id=request.patient_id,
                preferred_date=request.appointment_date,
                preferred_time=request.start_time,
            )
        except Exception as e:
            self.logger.warning(f"Slot advisor failed, falling back: {e}", exc_info=True)
            return None

        if suggestion is None:
            return None
        if suggestion.confidence < self.policy.advisory_confidence_threshold:
            self.logger.info(
                f"Advisory suggestion below threshold "
                f"({suggestion.confidence:.2f} < {self.policy.advisory_confidence_threshold:.2f})"
            )
            return None
        if suggestion.doctor_id != request.doctor_id:
            self.logger.warning(
                f"Advisor suggested doctor {suggestion.doctor_id} for a booking with doctor {request.doctor_id}"
            )
            return None

        advisory_request = replace(
            request,
            appointment_date=suggestion.appointment_date,
            start_time=suggestion.start_time,
            booking_source=BookingSource.ADVISORY,
            advisory_confidence=suggestion.confidence,
        )
        result = await service.book(advisory_request)
        if result.success or result.retryable:
            return result

        self.logger.info(f"Advisory slot rejected ({result.error_code}), falling back")
        return None


class DeterministicBookingStrategy(BookingStrategy):
    """Books the requested slot through the validated path."""

    @property
    def strategy_name(self) -> str:
        return "deterministic"

    @property
    def is_authoritative(self) -> bool:
        return True

    async def attempt(self, service: "AvailabilityService", request: BookAppointmentRequest) -> SchedulingResult:
        return await service.book(request)


class BookingStrategyChain:
    """
    Runs strategies in order until one produces a result.

    Example:
        ```python
        chain = BookingStrategyChain(
            [AdvisoryBookingStrategy(advisor, policy), DeterministicBookingStrategy()]
        )
        result = await chain.book(service, request)
        ```
    """

    def __init__(self, strategies: list[BookingStrategy]):
        if not strategies:
            raise ValueError("At least one booking strategy must be provided")
        if not strategies[-1].is_authoritative:
            raise ValueError("The last booking strategy must be authoritative")
        self.strategies = strategies
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def book(
        self,
        service: "AvailabilityService",
        request: BookAppointmentRequest,
        use_advisory: bool = True,
    ) -> SchedulingResult:
        for strategy in self.strategies:
            if not use_advisory and not strategy.is_authoritative:
                continue
            result = await strategy.attempt(service, request)
            if result is not None:
                self.logger.debug(f"Strategy '{strategy.strategy_name}' produced the booking result")
                return result

        return SchedulingResult.error(VALIDATION_ERROR, "No booking strategy accepted the request")
