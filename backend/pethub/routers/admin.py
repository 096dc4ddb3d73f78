"""Admin-only listings, cascade deletes and shop application review.

Every route depends on `require_admin`, so non-admins get 403 and
anonymous callers 401 before any handler runs.
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import services
from ..auth import require_admin
from ..database import get_session

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/users")
def list_users(db: Session = Depends(get_session)):
    return services.AdminService(db).users()


@router.delete("/users/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_session)):
    services.AdminService(db).delete_user(user_id)
    return {'message': 'User and all related data deleted successfully'}


@router.get("/pets")
def list_pets(db: Session = Depends(get_session)):
    return services.AdminService(db).pets()


@router.delete("/pets/{pet_id}")
def delete_pet(pet_id: int, db: Session = Depends(get_session)):
    services.AdminService(db).delete_pet(pet_id)
    return {'message': 'Pet and all related data deleted successfully'}


@router.get("/shops")
def list_shops(db: Session = Depends(get_session)):
    return services.AdminService(db).shops()


@router.delete("/shops/{shop_id}")
def delete_shop(shop_id: int, db: Session = Depends(get_session)):
    services.AdminService(db).delete_shop(shop_id)
    return {'message': 'Shop and all related data deleted successfully'}


@router.get("/shop-applications")
def list_applications(db: Session = Depends(get_session)):
    return services.AdminService(db).applications()


@router.put("/shop-applications/{application_id}/{action}")
def process_application(application_id: int, action: str, db: Session = Depends(get_session)):
    return services.AdminService(db).process_application(application_id, action)


@router.get("/stats")
def stats(db: Session = Depends(get_session)):
    return services.AdminService(db).stats()
