"""Reservation workflow

Callers of the repositories for the reservation lifecycle. Every state
change records a change log carrying the full reservation document.
"""

from typing import List, Optional, Union

import structlog

from app.errors import NotFoundError, UnauthorizedError, ValidationError
from app.models.change_log import ChangeAction, ChangeLog
from app.models.reservation import CancelledReservation, Reservation, ReservationStatus
from app.models.user import User, UserRole
from app.repositories import ChangeLogRepository, ReservationRepository, UserRepository
from app.schemas.common import validate_input
from app.schemas.reservation import (
    ReservationCreate,
    ReservationFilter,
    ReservationRequest,
    ReservationUpdate,
)
from app.storage import keys
from app.storage.indexes import IndexManager, advisory_write
from app.storage.query import QueryService

logger = structlog.get_logger()

# status -> statuses an action may start from
APPROVABLE = {ReservationStatus.REQUESTED.value}
COMPLETABLE = {ReservationStatus.APPROVED.value}
CANCELLABLE = {ReservationStatus.REQUESTED.value, ReservationStatus.APPROVED.value}


class ReservationService:
    """Reservation use cases for an authenticated actor"""

    def __init__(self, store):
        indexes = IndexManager(store)
        queries = QueryService.for_store(store, indexes)
        self.users = UserRepository(store, indexes, queries)
        self.reservations = ReservationRepository(store, indexes, queries)
        self.change_logs = ChangeLogRepository(store, indexes, queries)

    # ------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------

    @staticmethod
    def _require_staff(actor: User, action: str) -> None:
        if not actor.is_staff:
            raise UnauthorizedError(f"Only employees can {action} reservations")

    @staticmethod
    def _require_owner_or_staff(reservation: Reservation, actor: User, action: str) -> None:
        if reservation.created_by != actor.id and not actor.is_staff:
            raise UnauthorizedError(f"Not authorized to {action} this reservation")

    async def _record(self, reservation: Reservation, action: ChangeAction, actor: User) -> ChangeLog:
        return await self.change_logs.create(
            {
                "reservation_id": reservation.id,
                "action": action,
                "changed_by": actor.id,
                "snapshot": reservation.to_document(),
            }
        )

    async def _transition(
        self,
        reservation_id: str,
        actor: User,
        allowed_from: set,
        target: ReservationStatus,
        action: ChangeAction,
    ) -> Reservation:
        self._require_staff(actor, action.value)
        reservation = await self.reservations.get(reservation_id)
        if reservation.status not in allowed_from:
            raise ValidationError(
                [f"Cannot {action.value} a reservation that is {reservation.status}"]
            )

        reservation.status = target.value
        reservation = await self.reservations.save(reservation)
        logger.info(
            "Reservation status changed",
            reservation_id=reservation.id,
            status=reservation.status,
            actor=actor.email,
        )
        await self._record(reservation, action, actor)
        return reservation

    # ------------------------------------------------------------
    # Use cases
    # ------------------------------------------------------------

    async def create_reservation(self, data, actor: User) -> Reservation:
        if UserRole(actor.role) != UserRole.GUEST:
            raise UnauthorizedError("Only guests can create reservations")

        request = validate_input(ReservationRequest, data)
        payload = ReservationCreate(
            **request.model_dump(),
            status=ReservationStatus.REQUESTED,
            created_by=actor.id,
        )
        reservation = await self.reservations.create(payload)

        await self._record(reservation, ChangeAction.CREATE, actor)
        return reservation

    async def update_reservation(self, reservation_id: str, changes, actor: User) -> Reservation:
        reservation = await self.reservations.get(reservation_id)
        self._require_owner_or_staff(reservation, actor, "update")

        update = validate_input(ReservationUpdate, changes)
        merged = {
            **reservation.to_document(),
            **update.model_dump(by_alias=True, mode="json", exclude_unset=True),
        }
        # Field rules apply to the result, not just the changed fields
        validate_input(ReservationCreate, merged)

        reservation = await self.reservations.save(Reservation.from_document(merged))
        logger.info("Reservation updated", reservation_id=reservation.id, actor=actor.email)

        await self._record(reservation, ChangeAction.UPDATE, actor)
        return reservation

    async def cancel_reservation(
        self,
        reservation_id: str,
        actor: User,
    ) -> Union[Reservation, CancelledReservation]:
        """
        Idempotent: a reservation that is gone, or whose save fails, still
        reports as cancelled.
        """
        reservation = await self.reservations.find_by_id(reservation_id)
        if reservation is None:
            logger.warning(
                "Reservation not found on cancel, returning cancelled",
                reservation_id=reservation_id,
            )
            return CancelledReservation(id=reservation_id, updated_at=keys.utcnow())

        self._require_owner_or_staff(reservation, actor, "cancel")

        if reservation.status == ReservationStatus.CANCELLED.value:
            return reservation
        if reservation.status not in CANCELLABLE:
            raise ValidationError([f"Cannot cancel a reservation that is {reservation.status}"])

        reservation.status = ReservationStatus.CANCELLED.value
        try:
            reservation = await self.reservations.save(reservation)
        except Exception as e:
            logger.warning(
                "Save failed on cancel, returning cancelled",
                reservation_id=reservation_id,
                error=str(e),
            )
            return CancelledReservation(id=reservation_id, updated_at=keys.utcnow())

        logger.info("Reservation cancelled", reservation_id=reservation.id, actor=actor.email)
        await advisory_write(
            self._record(reservation, ChangeAction.CANCEL, actor),
            "Change log for cancel failed",
            reservation_id=reservation.id,
        )
        return reservation

    async def approve_reservation(self, reservation_id: str, actor: User) -> Reservation:
        return await self._transition(
            reservation_id, actor, APPROVABLE, ReservationStatus.APPROVED, ChangeAction.APPROVE
        )

    async def complete_reservation(self, reservation_id: str, actor: User) -> Reservation:
        return await self._transition(
            reservation_id, actor, COMPLETABLE, ReservationStatus.COMPLETED, ChangeAction.COMPLETE
        )

    async def get_reservation(self, reservation_id: str, actor: User) -> Reservation:
        reservation = await self.reservations.get(reservation_id)
        self._require_owner_or_staff(reservation, actor, "view")
        return reservation

    async def list_reservations(self, actor: User, criteria=None) -> List[Reservation]:
        self._require_staff(actor, "list all")
        return await self.reservations.find(validate_input(ReservationFilter, criteria))

    async def my_reservations(self, actor: User) -> List[Reservation]:
        return await self.reservations.find_by_created_by(actor.id)

    async def reservation_change_logs(self, reservation_id: str, actor: User) -> List[ChangeLog]:
        reservation: Optional[Reservation] = await self.reservations.find_by_id(reservation_id)
        if reservation is not None:
            self._require_owner_or_staff(reservation, actor, "view")
        elif not actor.is_staff:
            raise NotFoundError(f"Reservation not found: {reservation_id}")
        return await self.change_logs.find_by_reservation_id(reservation_id)
