# api/routes/users.py

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from core.sa.database import get_db
from core.sa.models import User as UserModel
from core.sa.repositories.book import BookRepository
from core.sa.repositories.review import ReviewRepository
from core.sa.repositories.user import UserRepository
from core.services.storage import ImageStorage, read_upload
from api.deps import get_current_user
from api.schemas.book import BookWithOwner
from api.schemas.review import Review
from api.schemas.user import User, UserSummary, UserList, ProfileUpdate, UserStats

router = APIRouter(prefix="/users", tags=["users"])


def get_storage() -> ImageStorage:
    return ImageStorage()


@router.get("/search", response_model=UserList)
def search_users(
    query: str = Query(..., description="Name or email to search for"),
    limit: int = Query(10, ge=1, le=50, description="Maximum number of users"),
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """
    Find users by name or email, e.g. to invite them to a community.

    Queries shorter than two characters return no results.
    """
    users = UserRepository(db).search_users(query=query, limit=limit)
    return UserList(items=users, total=len(users))


@router.put("/me", response_model=User)
def update_profile(
    data: ProfileUpdate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fields = data.model_dump(exclude_unset=True)
    if fields.get("name") is None:
        fields.pop("name", None)
    else:
        fields["name"] = fields["name"].strip()
    if "bio" in fields:
        fields["bio"] = (fields["bio"] or "").strip() or None
    return UserRepository(db).update_user(user.id, **fields)


@router.post("/me/avatar", response_model=User)
def upload_avatar(
    file: UploadFile = File(...),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_storage),
):
    url = storage.save_avatar(user.id, read_upload(file.file))
    return UserRepository(db).update_user(user.id, avatar_url=url)


@router.get("/{user_id}", response_model=UserSummary)
def get_user_profile(user_id: str, db: Session = Depends(get_db)):
    user = UserRepository(db).get_by_id(user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


@router.get("/{user_id}/stats", response_model=UserStats)
def get_user_stats(user_id: str, db: Session = Depends(get_db)):
    stats = UserRepository(db).get_user_stats(user_id)
    if stats is None:
        raise NotFoundError("User", user_id)
    return stats


@router.get("/{user_id}/books", response_model=list[BookWithOwner])
def get_user_books(user_id: str, db: Session = Depends(get_db)):
    return BookRepository(db).list_books(owner_id=user_id)


@router.get("/{user_id}/reviews", response_model=list[Review])
def get_user_reviews(user_id: str, db: Session = Depends(get_db)):
    return ReviewRepository(db).list_reviews(user_id=user_id)
