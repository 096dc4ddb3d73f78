"""Shop endpoints: applications, profiles, promotions, map and reviews."""

import json
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user, require_admin
from ..database import get_session
from ..errors import InvalidInputError
from ..schemas import dump
from .common import parse_form, require

router = APIRouter(prefix="/api", tags=["shops"])


def _parse_days(raw: Optional[str]) -> List[str]:
    """`availableDays` arrives as a JSON array encoded in a form field."""
    if raw is None or not raw.strip():
        return []
    try:
        days = json.loads(raw)
    except ValueError:
        raise InvalidInputError('Invalid available days format')
    if not isinstance(days, list) or not all(isinstance(d, str) for d in days):
        raise InvalidInputError('Invalid available days format')
    return days


@router.get("/shop")
def list_shops(user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    return services.ShopService(db).map_items()


@router.post("/shop", status_code=201)
def create_shop(payload: schemas.ShopCreateIn, admin: models.User = Depends(require_admin),
                db: Session = Depends(get_session)):
    return dump(schemas.ShopOut, services.ShopService(db).create(payload))


@router.post("/shop/apply", status_code=201)
def apply_for_shop(
    shop_name: Optional[str] = Form(None, alias="shopName"),
    shop_location: Optional[str] = Form(None, alias="shopLocation"),
    bio: Optional[str] = Form(None),
    contact_number: Optional[str] = Form(None, alias="contactNumber"),
    shop_message: Optional[str] = Form(None, alias="shopMessage"),
    shop_type: Optional[str] = Form(None, alias="shopType"),
    opening_time: Optional[str] = Form(None, alias="openingTime"),
    closing_time: Optional[str] = Form(None, alias="closingTime"),
    available_days: Optional[str] = Form(None, alias="availableDays"),
    is_available: Optional[str] = Form(None, alias="isAvailable"),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    shop_image: Optional[UploadFile] = File(None, alias="shopImage"),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    days = _parse_days(available_days)
    require(
        'All required fields must be provided',
        shop_name, shop_location, bio, contact_number, shop_message, shop_type, opening_time, closing_time,
    )
    data = parse_form(
        schemas.ShopApplicationIn,
        shop_name=shop_name,
        shop_location=shop_location,
        bio=bio,
        contact_number=contact_number,
        shop_message=shop_message,
        shop_type=shop_type,
        opening_time=opening_time,
        closing_time=closing_time,
        available_days=days,
        is_available=(is_available or 'true').strip().lower() == 'true',
        latitude=latitude,
        longitude=longitude,
    )
    application = services.ShopService(db).apply(user, data, shop_image)
    return {
        'success': True,
        'message': 'Shop application submitted successfully',
        'data': dump(schemas.ShopApplicationOut, application),
    }


@router.get("/shop/profile")
def get_shop_profile(user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    shop = services.ShopService(db).profile(user)
    return {'success': True, 'message': 'Shop profile retrieved successfully', 'data': dump(schemas.ShopOut, shop)}


@router.put("/shop/profile")
def update_shop_profile(
    shop_name: Optional[str] = Form(None, alias="shopName"),
    is_available: Optional[str] = Form(None, alias="isAvailable"),
    bio: Optional[str] = Form(None),
    contact_number: Optional[str] = Form(None, alias="contactNumber"),
    shop_location: Optional[str] = Form(None, alias="shopLocation"),
    shop_image: Optional[UploadFile] = File(None, alias="shopImage"),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    shop = services.ShopService(db).update_profile(
        user, shop_name, is_available, bio, contact_number, shop_location, shop_image
    )
    return {'success': True, 'message': 'Shop profile updated successfully', 'data': dump(schemas.ShopOut, shop)}


@router.post("/shop/promotional-post", status_code=201)
def create_promotional_post(
    caption: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    post = services.ShopService(db).create_promotion(user, caption, image)
    return {
        'success': True,
        'message': 'Promotional post created successfully',
        'data': dump(schemas.PromotionalPostOut, post),
    }


@router.get("/shop/promotional-post")
def list_promotional_posts(user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    return [dump(schemas.PromotionalPostOut, p) for p in services.ShopService(db).promotions(user)]


@router.post("/shop/reviews", status_code=201)
def add_review(payload: schemas.ReviewIn, user: models.User = Depends(get_current_user),
               db: Session = Depends(get_session)):
    review = services.ShopService(db).add_review(user, payload)
    return dump(schemas.ShopReviewOut, review, userName=user.full_name)


@router.get("/shop/reviews")
def list_reviews(shop_id: int = Query(..., alias="shopId"), db: Session = Depends(get_session)):
    return services.ShopService(db).reviews(shop_id)


@router.get("/shops/map")
def shop_map(search: Optional[str] = Query(None), db: Session = Depends(get_session)):
    return services.ShopService(db).pins(search)


@router.get("/shop-profile/{shop_id}")
def public_shop_profile(shop_id: int, db: Session = Depends(get_session)):
    return services.ShopService(db).public_profile(shop_id)
