"""
Reservation Domain Events

Published after the transaction that produced them commits.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from shared.domain.base import DomainEvent


@dataclass
class ReservationCreated(DomainEvent):
    """
    Event: A requester submitted a reservation (-> FIRST_PENDING)

    Triggers:
    - Notify approvers of the space's region
    """
    reservation_id: int
    space_id: int
    requester_id: int
    reservation_from: datetime
    reservation_to: datetime


@dataclass
class ReservationResubmitted(DomainEvent):
    """Event: A rejected or canceled reservation was edited and sent back to FIRST_PENDING"""
    reservation_id: int
    space_id: int
    requester_id: int
    from_status: str


@dataclass
class ReservationStatusChanged(DomainEvent):
    """
    Event: An approver or the requester moved a reservation to a new status

    Triggers:
    - Email the requester about approval, rejection or cancellation
    """
    reservation_id: int
    requester_id: int
    from_status: str
    to_status: str
    actor_id: Optional[int] = None
    memo: str = ''


@dataclass
class PrevisitCreated(DomainEvent):
    """Event: A previsit was booked for a reservation"""
    reservation_id: int
    previsit_id: int
    space_id: int
    previsit_from: datetime
    previsit_to: datetime


@dataclass
class PrevisitRescheduled(DomainEvent):
    """Event: The requester moved the previsit of a reservation to a new window"""
    reservation_id: int
    previsit_id: int
    space_id: int
    previsit_from: datetime
    previsit_to: datetime
