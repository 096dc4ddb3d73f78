"""Care task endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session
from ..schemas import dump

router = APIRouter(prefix="/api/task", tags=["tasks"])


@router.post("", status_code=201)
def create_task(payload: schemas.TaskCreateIn, user: models.User = Depends(get_current_user),
                db: Session = Depends(get_session)):
    return dump(schemas.TaskOut, services.TaskService(db).create(user, payload))


@router.get("")
def list_tasks(pet_id: Optional[int] = Query(None, alias="petId"),
               user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    return services.TaskService(db).list(user, pet_id)


@router.get("/{task_id}")
def get_task(task_id: int, user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    return dump(schemas.TaskOut, services.TaskService(db).get_owned(task_id, user))


@router.put("/{task_id}")
def update_task(task_id: int, payload: schemas.TaskUpdateIn, user: models.User = Depends(get_current_user),
                db: Session = Depends(get_session)):
    return dump(schemas.TaskOut, services.TaskService(db).update(task_id, user, payload))


@router.delete("/{task_id}", status_code=204)
def delete_task(task_id: int, user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    services.TaskService(db).delete(task_id, user)
    return Response(status_code=204)
