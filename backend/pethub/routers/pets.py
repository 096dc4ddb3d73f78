"""Pet profile and medical record endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session
from ..schemas import dump
from .common import parse_form, require

router = APIRouter(prefix="/api", tags=["pets"])


@router.get("/pet")
def list_pets(user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    return services.PetService(db).list_for(user)


@router.post("/pet", status_code=201)
def create_pet(
    name: Optional[str] = Form(None),
    birthdate: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    breed: Optional[str] = Form(None),
    health_condition: Optional[str] = Form(None, alias="healthCondition"),
    pet_picture: Optional[UploadFile] = File(None, alias="petPicture"),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    require('Missing required pet fields (name, birthdate, type)', name, birthdate, type)
    data = parse_form(
        schemas.PetIn,
        name=name, birthdate=birthdate, type=type, breed=breed, health_condition=health_condition,
    )
    pet = services.PetService(db).create(user, data, pet_picture)
    return dump(schemas.PetOut, pet)


@router.get("/pet/{pet_id}")
def get_pet(pet_id: int, user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    return dump(schemas.PetOut, services.PetService(db).get_owned(pet_id, user))


@router.put("/pet/{pet_id}")
def update_pet(
    pet_id: int,
    name: Optional[str] = Form(None),
    birthdate: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    breed: Optional[str] = Form(None),
    health_condition: Optional[str] = Form(None, alias="healthCondition"),
    pet_picture: Optional[UploadFile] = File(None, alias="petPicture"),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    require('Missing required fields: name, type, and birthdate are required', name, type, birthdate)
    data = parse_form(
        schemas.PetIn,
        name=name, birthdate=birthdate, type=type, breed=breed, health_condition=health_condition,
    )
    pet = services.PetService(db).update(pet_id, user, data, pet_picture)
    return dump(schemas.PetOut, pet)


@router.delete("/pet/{pet_id}", status_code=204)
def delete_pet(pet_id: int, user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    services.PetService(db).delete(pet_id, user)
    return Response(status_code=204)


# medical records


@router.get("/pets/{pet_id}/medical-records")
def list_medical_records(pet_id: int, user: models.User = Depends(get_current_user),
                         db: Session = Depends(get_session)):
    records = services.MedicalRecordService(db).list(pet_id, user)
    return [dump(schemas.MedicalRecordOut, r) for r in records]


@router.post("/pets/{pet_id}/medical-records", status_code=201)
def create_medical_record(pet_id: int, payload: schemas.MedicalRecordIn,
                          user: models.User = Depends(get_current_user),
                          db: Session = Depends(get_session)):
    record = services.MedicalRecordService(db).create(pet_id, user, payload)
    return {
        'success': True,
        'message': 'Medical record added successfully',
        'data': dump(schemas.MedicalRecordOut, record),
    }


@router.get("/pets/{pet_id}/medical-records/{record_id}")
def get_medical_record(pet_id: int, record_id: int, user: models.User = Depends(get_current_user),
                       db: Session = Depends(get_session)):
    return dump(schemas.MedicalRecordOut, services.MedicalRecordService(db).get(pet_id, record_id, user))


@router.put("/pets/{pet_id}/medical-records/{record_id}")
def update_medical_record(pet_id: int, record_id: int, payload: schemas.MedicalRecordIn,
                          user: models.User = Depends(get_current_user),
                          db: Session = Depends(get_session)):
    record = services.MedicalRecordService(db).update(pet_id, record_id, user, payload)
    return {
        'success': True,
        'message': 'Medical record updated successfully',
        'data': dump(schemas.MedicalRecordOut, record),
    }


@router.delete("/pets/{pet_id}/medical-records/{record_id}")
def delete_medical_record(pet_id: int, record_id: int, user: models.User = Depends(get_current_user),
                          db: Session = Depends(get_session)):
    services.MedicalRecordService(db).delete(pet_id, record_id, user)
    return {'success': True, 'message': 'Medical record deleted successfully'}
