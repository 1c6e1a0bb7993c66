import logging
from typing import Iterable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import get_db, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/popups", tags=["popups"])


def targets_page(popup: models.Popup, page: str) -> bool:
    pages = popup.target_pages or []
    return "all" in pages or page in pages


def select_popup(popups: Iterable[models.Popup], page: str) -> Optional[models.Popup]:
    """
    Pick the popup to offer on ``page``.

    Among active popups targeting the page (or ``all``), the highest
    ``priority`` wins and ties go to the most recently created one.
    """
    candidates = [p for p in popups if p.is_active and targets_page(p, page)]
    if not candidates:
        return None
    return max(candidates, key=lambda p: (p.priority, p.created_at, p.id))


def get_popup_or_404(db: Session, popup_id: int) -> models.Popup:
    popup = db.get(models.Popup, popup_id)
    if not popup:
        raise HTTPException(status_code=404, detail="Popup not found")
    return popup


# ----- Public -----
@router.get("/active", response_model=schemas.Envelope[List[schemas.PopupOut]])
def get_active_popup(page: str = "all", db: Session = Depends(get_db)):
    """
    Return the single popup to offer on ``page`` as a list of at most one item.

    Whether the client actually shows it again is decided by its own
    display history and the popup's ``frequency``.
    """
    active = db.query(models.Popup).filter(models.Popup.is_active == True).all()
    popup = select_popup(active, page)
    return {"data": [popup] if popup else []}


@router.get("/admin/all", response_model=schemas.Envelope[List[schemas.PopupOut]])
def list_popups(
    db: Session = Depends(get_db),
    _: models.User = Depends(require_roles("admin")),
):
    """
    List every popup, newest first. *(Admin-only)*
    """
    popups = (
        db.query(models.Popup)
        .order_by(models.Popup.created_at.desc(), models.Popup.id.desc())
        .all()
    )
    return {"data": popups}


@router.get("/{popup_id}", response_model=schemas.Envelope[schemas.PopupOut])
def get_popup(popup_id: int, db: Session = Depends(get_db)):
    """Popup detail, used by the "learn more" page."""
    return {"data": get_popup_or_404(db, popup_id)}


@router.post("/{popup_id}/view", response_model=schemas.MessageOut)
def track_view(popup_id: int, db: Session = Depends(get_db)):
    popup = get_popup_or_404(db, popup_id)
    # increment in SQL so concurrent views are not lost
    db.query(models.Popup).filter(models.Popup.id == popup.id).update(
        {models.Popup.view_count: models.Popup.view_count + 1},
        synchronize_session=False,
    )
    db.commit()
    return {"message": "View recorded"}


@router.post("/{popup_id}/click", response_model=schemas.MessageOut)
def track_click(popup_id: int, db: Session = Depends(get_db)):
    popup = get_popup_or_404(db, popup_id)
    db.query(models.Popup).filter(models.Popup.id == popup.id).update(
        {models.Popup.click_count: models.Popup.click_count + 1},
        synchronize_session=False,
    )
    db.commit()
    return {"message": "Click recorded"}


# ----- Admin -----
@router.post(
    "/",
    response_model=schemas.Envelope[schemas.PopupOut],
    status_code=status.HTTP_201_CREATED,
)
def create_popup(
    popup_in: schemas.PopupCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("admin")),
):
    """
    Create a popup. *(Admin-only)*

    ``frequency`` is in hours (1-168), ``priority`` ranges 1-10 and
    ``targetPages`` lists the pages the popup may appear on.
    """
    popup = models.Popup(**popup_in.model_dump())
    db.add(popup)
    db.commit()
    db.refresh(popup)
    logger.info("Popup %s created by %s", popup.id, current_user.username)
    return {"message": "Popup created successfully", "data": popup}


@router.put("/{popup_id}", response_model=schemas.Envelope[schemas.PopupOut])
def update_popup(
    popup_id: int,
    popup_update: schemas.PopupUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("admin")),
):
    """
    Update a popup's content or display settings. *(Admin-only)*

    Raises
    ------
    HTTPException
        - 404 if the popup does not exist.
    """
    popup = get_popup_or_404(db, popup_id)
    data = popup_update.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in data.items():
        setattr(popup, field, value)
    db.commit()
    db.refresh(popup)
    logger.info("Popup %s updated by %s (%s)", popup.id, current_user.username, ", ".join(sorted(data)))
    return {"message": "Popup updated successfully", "data": popup}


@router.delete("/{popup_id}", response_model=schemas.MessageOut)
def delete_popup(
    popup_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("admin")),
):
    popup = get_popup_or_404(db, popup_id)
    db.delete(popup)
    db.commit()
    logger.info("Popup %s deleted by %s", popup_id, current_user.username)
    return {"message": "Popup deleted successfully"}
