from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import get_db

router = APIRouter(prefix="/facilities", tags=["facilities"])


@router.get("/", response_model=schemas.Envelope[List[schemas.FacilityOut]])
def list_facilities(
    db: Session = Depends(get_db),
    only_verified: bool = Query(False, alias="onlyVerified"),
):
    """
    List recycling facilities.

    Parameters
    ----------
    only_verified : bool, optional
        If True, only facilities marked as verified are returned.
    """
    query = db.query(models.Facility)
    if only_verified:
        query = query.filter(models.Facility.verified == True)
    return {"data": query.order_by(models.Facility.id).all()}


@router.get("/{facility_id}", response_model=schemas.Envelope[schemas.FacilityOut])
def get_facility(facility_id: int, db: Session = Depends(get_db)):
    facility = db.get(models.Facility, facility_id)
    if not facility:
        raise HTTPException(status_code=404, detail="Facility not found")
    return {"data": facility}


@router.post(
    "/",
    response_model=schemas.Envelope[schemas.FacilityOut],
    status_code=status.HTTP_201_CREATED,
)
def add_facility(facility_in: schemas.FacilityCreate, db: Session = Depends(get_db)):
    """
    Submit a facility from the public form.

    Submissions always start unverified.
    """
    facility = models.Facility(**facility_in.model_dump(), verified=False)
    db.add(facility)
    db.commit()
    db.refresh(facility)
    return {"message": "Facility added successfully", "data": facility}
