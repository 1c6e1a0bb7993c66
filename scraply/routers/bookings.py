import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import ensure_owner_or_admin, get_db, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])

# Each status may only advance to the next one
BOOKING_TRANSITIONS = {
    "pending": "in-progress",
    "in-progress": "completed",
    "completed": None,
}


def can_transition(current: str, target: str) -> bool:
    """
    Check whether a booking may move from ``current`` to ``target``.

    Only single forward steps are allowed: no skips, no reversals and no
    re-setting the same status.
    """
    return BOOKING_TRANSITIONS.get(current) == target


def get_booking_or_404(db: Session, booking_id: int) -> models.Booking:
    booking = db.get(models.Booking, booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@router.post(
    "/",
    response_model=schemas.Envelope[schemas.BookingOut],
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    booking_in: schemas.BookingCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("user")),
):
    """
    Submit a recycling pickup request for the current user.

    The booking starts as ``pending``. The facility is stored by name and is
    not checked against the facility list.
    """
    data = booking_in.model_dump()
    if not data.get("user_email"):
        data["user_email"] = current_user.email

    booking = models.Booking(**data, user_id=current_user.id, book_status="pending")
    db.add(booking)
    db.commit()
    db.refresh(booking)
    logger.info("Booking %s created by %s for %s", booking.id, current_user.username, booking.recycle_item)
    return {"message": "Booking created successfully", "data": booking}


@router.get("/", response_model=schemas.Envelope[List[schemas.BookingOut]])
def list_bookings(
    db: Session = Depends(get_db),
    _: models.User = Depends(require_roles("admin")),
):
    """
    List every booking, newest first. *(Admin-only)*
    """
    bookings = (
        db.query(models.Booking)
        .order_by(models.Booking.created_at.desc(), models.Booking.id.desc())
        .all()
    )
    return {"data": bookings}


@router.get("/user/{user_id}", response_model=schemas.Envelope[List[schemas.BookingOut]])
def list_user_bookings(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("user", "admin")),
):
    """
    Booking history of one user, used by the tracking page.

    Users may only list their own bookings; admins may list anyone's.
    """
    ensure_owner_or_admin(current_user, user_id, "Not allowed to view these bookings")
    bookings = (
        db.query(models.Booking)
        .filter(models.Booking.user_id == user_id)
        .order_by(models.Booking.created_at.desc(), models.Booking.id.desc())
        .all()
    )
    return {"data": bookings}


@router.get("/{booking_id}", response_model=schemas.Envelope[schemas.BookingOut])
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("user", "admin")),
):
    booking = get_booking_or_404(db, booking_id)
    ensure_owner_or_admin(current_user, booking.user_id, "Not allowed to view this booking")
    return {"data": booking}


@router.put("/{booking_id}", response_model=schemas.Envelope[schemas.BookingOut])
def update_booking_status(
    booking_id: int,
    status_update: schemas.BookingStatusUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("admin")),
):
    """
    Advance a booking's status. *(Admin-only)*

    ``pending`` -> ``in-progress`` -> ``completed``, one step at a time. The
    acting admin and the time of the change are recorded.

    Raises
    ------
    HTTPException
        - 404 if the booking does not exist.
        - 409 if the requested status is not the next one.
    """
    booking = get_booking_or_404(db, booking_id)
    target = status_update.book_status

    if not can_transition(booking.book_status, target):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot change booking status from '{booking.book_status}' to '{target}'",
        )

    previous = booking.book_status
    booking.book_status = target
    booking.book_status_at = datetime.utcnow()
    booking.book_status_by = current_user.username

    db.commit()
    db.refresh(booking)
    logger.info("Booking %s moved %s -> %s by %s", booking.id, previous, target, current_user.username)
    return {"message": f"Booking {target}", "data": booking}
