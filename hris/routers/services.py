from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hris.core.exceptions import ConflictError, InvalidRequestError, NotFoundError
from hris.database import get_db
from hris.models.employee import Employee
from hris.models.service import Service
from hris.routers.auth_deps import get_current_user, require_admin
from hris.schemas.service import ServiceCreate, ServiceOut, ServiceUpdate

router = APIRouter(
    prefix="/services",
    tags=["services"]
)

DUPLICATE_NAME = "Service with this name already exists"


def _get_service(db: Session, service_id: int) -> Service:
    service = db.get(Service, service_id)
    if not service:
        raise NotFoundError("Service not found")
    return service


def _commit_unique(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_NAME)


@router.get("")
def list_services(
    include_inactive: bool = Query(True, alias="includeInactive"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    query = db.query(Service)
    if not include_inactive:
        query = query.filter(Service.is_active.is_(True))
    services = query.order_by(Service.created_at.desc(), Service.id.desc()).all()
    return {"services": [ServiceOut.model_validate(s) for s in services]}


@router.get("/active")
def list_active_services(db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    services = db.query(Service).filter(Service.is_active.is_(True)).order_by(Service.name).all()
    return {"services": [ServiceOut.model_validate(s) for s in services]}


@router.get("/{service_id}")
def get_service(service_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(get_current_user)):
    return {"service": ServiceOut.model_validate(_get_service(db, service_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_service(data: ServiceCreate, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    name = data.name.strip()
    if db.query(Service.id).filter(Service.name == name).first():
        raise ConflictError(DUPLICATE_NAME)
    service = Service(name=name, description=data.description, is_active=data.is_active)
    db.add(service)
    _commit_unique(db)
    db.refresh(service)
    return {"message": "Service created successfully", "service": ServiceOut.model_validate(service)}


@router.put("/{service_id}")
def update_service(
    service_id: int,
    data: ServiceUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin()),
):
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise InvalidRequestError("No fields to update")
    service = _get_service(db, service_id)
    if changes.get("name") is not None:
        changes["name"] = changes["name"].strip()
        clash = db.query(Service.id).filter(Service.name == changes["name"], Service.id != service_id).first()
        if clash:
            raise ConflictError(DUPLICATE_NAME)
    for field, value in changes.items():
        if field in ("name", "is_active") and value is None:
            continue
        setattr(service, field, value)
    _commit_unique(db)
    db.refresh(service)
    return {"message": "Service updated successfully", "service": ServiceOut.model_validate(service)}


@router.patch("/{service_id}/toggle")
def toggle_service(service_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    service = _get_service(db, service_id)
    service.is_active = not service.is_active
    db.commit()
    db.refresh(service)
    return {"message": "Service status updated successfully", "service": ServiceOut.model_validate(service)}


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service(service_id: int, db: Session = Depends(get_db), current_user: Employee = Depends(require_admin())):
    db.delete(_get_service(db, service_id))
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
