"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
pets, posts, shops, ...). Repositories return SQLModel objects.
`save` commits immediately; the `delete_*` helpers only stage bulk
deletes so services can group them into a single transaction.
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func
from sqlmodel import Session, select

from . import models


class _Repository:
    model = None

    def __init__(self, session: Session):
        self.session = session

    def get(self, obj_id: int):
        """Fetch a row by primary key, or `None`."""
        return self.session.get(self.model, obj_id)

    def save(self, obj):
        """Persist a new or modified row and return the refreshed instance."""
        if obj.id is not None and hasattr(obj, 'updated_at'):
            obj.updated_at = models.utcnow()
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(self.model)).one()

    def _delete_where(self, *criteria) -> None:
        self.session.exec(delete(self.model).where(*criteria))


class UserRepository(_Repository):
    """CRUD operations for `User` objects."""
    model = models.User

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return a `User` by (lower-cased) email or `None` if not found."""
        stmt = select(models.User).where(models.User.email == email.strip().lower())
        return self.session.exec(stmt).first()

    def list_all(self) -> List[models.User]:
        stmt = select(models.User).order_by(models.User.created_at.desc(), models.User.id.desc())
        return self.session.exec(stmt).all()

    def list_by_ids(self, user_ids: Iterable[int]) -> Dict[int, models.User]:
        ids = set(user_ids)
        if not ids:
            return {}
        stmt = select(models.User).where(models.User.id.in_(ids))
        return {u.id: u for u in self.session.exec(stmt).all()}

    def delete(self, user_id: int) -> None:
        self._delete_where(models.User.id == user_id)


class PetRepository(_Repository):
    model = models.Pet

    def get_owned(self, pet_id: int, user_id: int) -> Optional[models.Pet]:
        """Return the pet only if it belongs to `user_id`."""
        stmt = select(models.Pet).where(models.Pet.id == pet_id, models.Pet.user_id == user_id)
        return self.session.exec(stmt).first()

    def list_for_user(self, user_id: int) -> List[models.Pet]:
        stmt = select(models.Pet).where(models.Pet.user_id == user_id).order_by(models.Pet.id)
        return self.session.exec(stmt).all()

    def list_all(self, newest_first: bool = False) -> List[models.Pet]:
        order = models.Pet.created_at.desc() if newest_first else models.Pet.id
        return self.session.exec(select(models.Pet).order_by(order)).all()

    def ids_for_user(self, user_id: int) -> List[int]:
        return self.session.exec(select(models.Pet.id).where(models.Pet.user_id == user_id)).all()

    def counts_by_user(self) -> Dict[int, int]:
        stmt = select(models.Pet.user_id, func.count(models.Pet.id)).group_by(models.Pet.user_id)
        return dict(self.session.exec(stmt).all())

    def delete(self, pet_id: int) -> None:
        self._delete_where(models.Pet.id == pet_id)

    def delete_for_user(self, user_id: int) -> None:
        self._delete_where(models.Pet.user_id == user_id)


class MedicalRecordRepository(_Repository):
    model = models.MedicalRecord

    def get_for(self, record_id: int, pet_id: int, user_id: int) -> Optional[models.MedicalRecord]:
        """Return a record only when it matches both pet and owner."""
        stmt = select(models.MedicalRecord).where(
            models.MedicalRecord.id == record_id,
            models.MedicalRecord.pet_id == pet_id,
            models.MedicalRecord.user_id == user_id,
        )
        return self.session.exec(stmt).first()

    def list_for_pets(self, pet_ids: Iterable[int]) -> Dict[int, List[models.MedicalRecord]]:
        """Group records by pet, newest `date` first within each pet."""
        ids = list(pet_ids)
        out: Dict[int, List[models.MedicalRecord]] = {pid: [] for pid in ids}
        if not ids:
            return out
        stmt = (
            select(models.MedicalRecord)
            .where(models.MedicalRecord.pet_id.in_(ids))
            .order_by(models.MedicalRecord.date.desc(), models.MedicalRecord.id.desc())
        )
        for rec in self.session.exec(stmt).all():
            out[rec.pet_id].append(rec)
        return out

    def delete(self, record_id: int) -> None:
        self._delete_where(models.MedicalRecord.id == record_id)

    def delete_for_pet(self, pet_id: int) -> None:
        self._delete_where(models.MedicalRecord.pet_id == pet_id)

    def delete_for_user_or_pets(self, user_id: int, pet_ids: List[int]) -> None:
        self._delete_where((models.MedicalRecord.user_id == user_id) | models.MedicalRecord.pet_id.in_(pet_ids))


class VaccinationRepository(_Repository):
    model = models.VaccinationRecord

    def get_owned(self, record_id: int, user_id: int) -> Optional[models.VaccinationRecord]:
        stmt = select(models.VaccinationRecord).where(
            models.VaccinationRecord.id == record_id,
            models.VaccinationRecord.user_id == user_id,
        )
        return self.session.exec(stmt).first()

    def list_for_user(self, user_id: int) -> List[models.VaccinationRecord]:
        stmt = (
            select(models.VaccinationRecord)
            .where(models.VaccinationRecord.user_id == user_id)
            .order_by(models.VaccinationRecord.date.desc())
        )
        return self.session.exec(stmt).all()

    def delete(self, record_id: int) -> None:
        self._delete_where(models.VaccinationRecord.id == record_id)

    def delete_for_pet(self, pet_id: int) -> None:
        self._delete_where(models.VaccinationRecord.pet_id == pet_id)

    def delete_for_user_or_pets(self, user_id: int, pet_ids: List[int]) -> None:
        self._delete_where(
            (models.VaccinationRecord.user_id == user_id) | models.VaccinationRecord.pet_id.in_(pet_ids)
        )


class TaskRepository(_Repository):
    model = models.Task

    def get_owned(self, task_id: int, user_id: int) -> Optional[models.Task]:
        stmt = select(models.Task).where(models.Task.id == task_id, models.Task.user_id == user_id)
        return self.session.exec(stmt).first()

    def list_for_user(self, user_id: int, pet_id: Optional[int] = None) -> List[models.Task]:
        """Return the user's tasks ordered by scheduled time, optionally for one pet."""
        stmt = select(models.Task).where(models.Task.user_id == user_id)
        if pet_id:
            stmt = stmt.where(models.Task.pet_id == pet_id)
        return self.session.exec(stmt.order_by(models.Task.time, models.Task.id)).all()

    def list_for_pets(self, pet_ids: Iterable[int]) -> Dict[int, List[models.Task]]:
        ids = list(pet_ids)
        out: Dict[int, List[models.Task]] = {pid: [] for pid in ids}
        if not ids:
            return out
        stmt = select(models.Task).where(models.Task.pet_id.in_(ids)).order_by(models.Task.time)
        for task in self.session.exec(stmt).all():
            out[task.pet_id].append(task)
        return out

    def find_by_type(self, user_id: int, pet_id: Optional[int], task_type: str) -> Optional[models.Task]:
        stmt = select(models.Task).where(
            models.Task.user_id == user_id,
            models.Task.pet_id == pet_id,
            models.Task.type == task_type,
        )
        return self.session.exec(stmt).first()

    def delete(self, task_id: int) -> None:
        self._delete_where(models.Task.id == task_id)

    def delete_for_pet(self, pet_id: int) -> None:
        self._delete_where(models.Task.pet_id == pet_id)

    def delete_for_user_or_pets(self, user_id: int, pet_ids: List[int]) -> None:
        self._delete_where((models.Task.user_id == user_id) | models.Task.pet_id.in_(pet_ids))


class PostRepository(_Repository):
    model = models.Post

    def list_all(self) -> List[models.Post]:
        stmt = select(models.Post).order_by(models.Post.created_at.desc(), models.Post.id.desc())
        return self.session.exec(stmt).all()

    def page(self, offset: int, limit: int) -> List[models.Post]:
        stmt = (
            select(models.Post)
            .order_by(models.Post.created_at.desc(), models.Post.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return self.session.exec(stmt).all()

    def ids_for_user(self, user_id: int) -> List[int]:
        return self.session.exec(select(models.Post.id).where(models.Post.user_id == user_id)).all()

    def counts_by_user(self) -> Dict[int, int]:
        stmt = select(models.Post.user_id, func.count(models.Post.id)).group_by(models.Post.user_id)
        return dict(self.session.exec(stmt).all())

    def delete_many(self, post_ids: List[int]) -> None:
        self._delete_where(models.Post.id.in_(post_ids))


class CommentRepository(_Repository):
    model = models.Comment

    def list_for_posts(self, post_ids: Iterable[int]) -> Dict[int, List[models.Comment]]:
        """Group comments by post, newest first."""
        ids = list(post_ids)
        out: Dict[int, List[models.Comment]] = {pid: [] for pid in ids}
        if not ids:
            return out
        stmt = (
            select(models.Comment)
            .where(models.Comment.post_id.in_(ids))
            .order_by(models.Comment.created_at.desc(), models.Comment.id.desc())
        )
        for c in self.session.exec(stmt).all():
            out[c.post_id].append(c)
        return out

    def counts_for_posts(self, post_ids: Iterable[int]) -> Dict[int, int]:
        ids = list(post_ids)
        if not ids:
            return {}
        stmt = (
            select(models.Comment.post_id, func.count(models.Comment.id))
            .where(models.Comment.post_id.in_(ids))
            .group_by(models.Comment.post_id)
        )
        return dict(self.session.exec(stmt).all())

    def ids_for_user_or_posts(self, user_id: int, post_ids: List[int]) -> List[int]:
        stmt = select(models.Comment.id).where(
            (models.Comment.user_id == user_id) | models.Comment.post_id.in_(post_ids)
        )
        return self.session.exec(stmt).all()

    def ids_for_posts(self, post_ids: List[int]) -> List[int]:
        stmt = select(models.Comment.id).where(models.Comment.post_id.in_(post_ids))
        return self.session.exec(stmt).all()

    def delete_many(self, comment_ids: List[int]) -> None:
        self._delete_where(models.Comment.id.in_(comment_ids))


class ReplyRepository(_Repository):
    model = models.Reply

    def list_for_comments(self, comment_ids: Iterable[int]) -> Dict[int, List[models.Reply]]:
        """Group replies by comment, oldest first (conversation order)."""
        ids = list(comment_ids)
        out: Dict[int, List[models.Reply]] = {cid: [] for cid in ids}
        if not ids:
            return out
        stmt = (
            select(models.Reply)
            .where(models.Reply.comment_id.in_(ids))
            .order_by(models.Reply.created_at, models.Reply.id)
        )
        for r in self.session.exec(stmt).all():
            out[r.comment_id].append(r)
        return out

    def delete_for_user_or_comments(self, user_id: Optional[int], comment_ids: List[int]) -> None:
        criteria = models.Reply.comment_id.in_(comment_ids)
        if user_id is not None:
            criteria = criteria | (models.Reply.user_id == user_id)
        self._delete_where(criteria)


class PostLikeRepository(_Repository):
    model = models.PostLike

    def get_for(self, user_id: int, post_id: int) -> Optional[models.PostLike]:
        stmt = select(models.PostLike).where(
            models.PostLike.user_id == user_id,
            models.PostLike.post_id == post_id,
        )
        return self.session.exec(stmt).first()

    def list_for_posts(self, post_ids: Iterable[int]) -> Dict[int, List[models.PostLike]]:
        ids = list(post_ids)
        out: Dict[int, List[models.PostLike]] = {pid: [] for pid in ids}
        if not ids:
            return out
        stmt = select(models.PostLike).where(models.PostLike.post_id.in_(ids)).order_by(models.PostLike.id)
        for like in self.session.exec(stmt).all():
            out[like.post_id].append(like)
        return out

    def count_for_post(self, post_id: int) -> int:
        stmt = select(func.count(models.PostLike.id)).where(models.PostLike.post_id == post_id)
        return self.session.exec(stmt).one()

    def remove(self, like: models.PostLike) -> None:
        self.session.delete(like)
        self.session.commit()

    def delete_for_user_or_posts(self, user_id: Optional[int], post_ids: List[int]) -> None:
        criteria = models.PostLike.post_id.in_(post_ids)
        if user_id is not None:
            criteria = criteria | (models.PostLike.user_id == user_id)
        self._delete_where(criteria)


class ShopRepository(_Repository):
    model = models.Shop

    def get_by_user(self, user_id: int) -> Optional[models.Shop]:
        stmt = select(models.Shop).where(models.Shop.user_id == user_id)
        return self.session.exec(stmt).first()

    def list_all(self) -> List[models.Shop]:
        return self.session.exec(select(models.Shop).order_by(models.Shop.id)).all()

    def list_by_name(self, search: Optional[str] = None) -> List[models.Shop]:
        """Shops ordered by name, optionally filtered on name or location."""
        stmt = select(models.Shop)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                func.lower(models.Shop.shop_name).like(pattern)
                | func.lower(models.Shop.shop_location).like(pattern)
            )
        return self.session.exec(stmt.order_by(models.Shop.shop_name)).all()

    def delete(self, shop_id: int) -> None:
        self._delete_where(models.Shop.id == shop_id)


class ShopApplicationRepository(_Repository):
    model = models.ShopApplication

    def find_pending(self, user_id: int) -> Optional[models.ShopApplication]:
        stmt = select(models.ShopApplication).where(
            models.ShopApplication.user_id == user_id,
            models.ShopApplication.status == 'pending',
        )
        return self.session.exec(stmt).first()

    def latest_with_status(self, user_id: int, status: str) -> Optional[models.ShopApplication]:
        stmt = (
            select(models.ShopApplication)
            .where(models.ShopApplication.user_id == user_id, models.ShopApplication.status == status)
            .order_by(models.ShopApplication.created_at.desc(), models.ShopApplication.id.desc())
        )
        return self.session.exec(stmt).first()

    def list_all(self) -> List[models.ShopApplication]:
        stmt = select(models.ShopApplication).order_by(
            models.ShopApplication.created_at.desc(), models.ShopApplication.id.desc()
        )
        return self.session.exec(stmt).all()

    def count_pending(self) -> int:
        stmt = select(func.count(models.ShopApplication.id)).where(models.ShopApplication.status == 'pending')
        return self.session.exec(stmt).one()

    def delete_for_user(self, user_id: int) -> None:
        self._delete_where(models.ShopApplication.user_id == user_id)


class PromotionalPostRepository(_Repository):
    model = models.PromotionalPost

    def list_for_shop(self, shop_id: int) -> List[models.PromotionalPost]:
        stmt = (
            select(models.PromotionalPost)
            .where(models.PromotionalPost.shop_id == shop_id)
            .order_by(models.PromotionalPost.created_at.desc(), models.PromotionalPost.id.desc())
        )
        return self.session.exec(stmt).all()

    def delete_for_shop(self, shop_id: int) -> None:
        self._delete_where(models.PromotionalPost.shop_id == shop_id)


class ShopReviewRepository(_Repository):
    model = models.ShopReview

    def get_for(self, user_id: int, shop_id: int) -> Optional[models.ShopReview]:
        stmt = select(models.ShopReview).where(
            models.ShopReview.user_id == user_id,
            models.ShopReview.shop_id == shop_id,
        )
        return self.session.exec(stmt).first()

    def list_for_shop(self, shop_id: int) -> List[models.ShopReview]:
        stmt = (
            select(models.ShopReview)
            .where(models.ShopReview.shop_id == shop_id)
            .order_by(models.ShopReview.created_at.desc(), models.ShopReview.id.desc())
        )
        return self.session.exec(stmt).all()

    def stats_for_shop(self, shop_id: int):
        """Return `(average_rating, review_count)` for a shop."""
        stmt = select(func.avg(models.ShopReview.rating), func.count(models.ShopReview.id)).where(
            models.ShopReview.shop_id == shop_id
        )
        avg, count = self.session.exec(stmt).one()
        return float(avg or 0.0), int(count or 0)

    def delete_for_shop(self, shop_id: int) -> None:
        self._delete_where(models.ShopReview.shop_id == shop_id)

    def shop_ids_for_user(self, user_id: int) -> List[int]:
        stmt = select(models.ShopReview.shop_id).where(models.ShopReview.user_id == user_id).distinct()
        return list(self.session.exec(stmt).all())

    def delete_for_user(self, user_id: int) -> None:
        self._delete_where(models.ShopReview.user_id == user_id)
