"""Vaccination record endpoints."""

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session
from ..schemas import dump

router = APIRouter(prefix="/api/vaccination", tags=["vaccinations"])


@router.post("", status_code=201)
def create_vaccination(payload: schemas.VaccinationIn, user: models.User = Depends(get_current_user),
                       db: Session = Depends(get_session)):
    record = services.VaccinationService(db).create(user, payload)
    return dump(schemas.VaccinationRecordOut, record)


@router.get("")
def list_vaccinations(user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    return [dump(schemas.VaccinationRecordOut, r) for r in services.VaccinationService(db).list(user)]


@router.put("/{record_id}")
def update_vaccination(record_id: int, payload: schemas.VaccinationIn,
                       user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    record = services.VaccinationService(db).update(record_id, user, payload)
    return dump(schemas.VaccinationRecordOut, record)


@router.delete("/{record_id}", status_code=204)
def delete_vaccination(record_id: int, user: models.User = Depends(get_current_user),
                       db: Session = Depends(get_session)):
    services.VaccinationService(db).delete(record_id, user)
    return Response(status_code=204)
