from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hris.core.exceptions import ConflictError, InvalidRequestError, NotFoundError
from hris.database import get_db
from hris.models.employee import Employee
from hris.models.holiday import Holiday
from hris.routers.auth_deps import get_current_user, require_admin
from hris.schemas.holiday import HolidayCreate, HolidayOut, HolidayUpdate

router = APIRouter(
    prefix="/holidays",
    tags=["holidays"]
)

DUPLICATE_DATE = "A holiday already exists on this date"


def _get_holiday(db: Session, holiday_id: int) -> Holiday:
    holiday = db.get(Holiday, holiday_id)
    if not holiday:
        raise NotFoundError("Holiday not found")
    return holiday


def _commit_unique(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_DATE)


@router.get("")
def list_holidays(
    include_inactive: bool = Query(True, alias="includeInactive"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    query = db.query(Holiday)
    if not include_inactive:
        query = query.filter(Holiday.is_active.is_(True))
    return {"holidays": [HolidayOut.model_validate(h) for h in query.order_by(Holiday.date).all()]}


@router.get("/active")
def list_active_holidays(db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    holidays = db.query(Holiday).filter(Holiday.is_active.is_(True)).order_by(Holiday.date).all()
    return {"holidays": [HolidayOut.model_validate(h) for h in holidays]}


@router.get("/{holiday_id}")
def get_holiday(holiday_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    return {"holiday": HolidayOut.model_validate(_get_holiday(db, holiday_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_holiday(data: HolidayCreate, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    if db.query(Holiday.id).filter(Holiday.date == data.date).first():
        raise ConflictError(DUPLICATE_DATE)
    holiday = Holiday(name=data.name.strip(), date=data.date, is_active=data.is_active)
    db.add(holiday)
    _commit_unique(db)
    db.refresh(holiday)
    return {"message": "Holiday created successfully", "holiday": HolidayOut.model_validate(holiday)}


@router.put("/{holiday_id}")
def update_holiday(
    holiday_id: int,
    data: HolidayUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin()),
):
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise InvalidRequestError("No fields to update")
    holiday = _get_holiday(db, holiday_id)
    if "date" in changes:
        clash = db.query(Holiday.id).filter(Holiday.date == changes["date"], Holiday.id != holiday_id).first()
        if clash:
            raise ConflictError(DUPLICATE_DATE)
    for field, value in changes.items():
        setattr(holiday, field, value.strip() if field == "name" else value)
    _commit_unique(db)
    db.refresh(holiday)
    return {"message": "Holiday updated successfully", "holiday": HolidayOut.model_validate(holiday)}


@router.patch("/{holiday_id}/toggle")
def toggle_holiday(holiday_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    holiday = _get_holiday(db, holiday_id)
    holiday.is_active = not holiday.is_active
    db.commit()
    db.refresh(holiday)
    return {"message": "Holiday status updated successfully", "holiday": HolidayOut.model_validate(holiday)}


@router.delete("/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holiday(holiday_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    db.delete(_get_holiday(db, holiday_id))
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
