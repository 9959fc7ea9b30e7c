from sqlalchemy.orm import Session
from storefront.data.models.user import UserModel
from storefront.domain.errors import NotFoundError, ValidationError
from storefront.repos.user_repo import UserRepo
from storefront.domain.schemas import UserCreate, UserRead


class UserService:
    def __init__(self, db: Session, owner_email: str | None = None):
        self.repo = UserRepo(db)
        self.owner_email = (owner_email or "").strip().lower() or None

    def _role_for(self, email: str | None) -> str:
        #wlasciciel sklepu (OWNER_EMAIL) dostaje role admin
        if self.owner_email and email and email.strip().lower() == self.owner_email:
            return "admin"
        return "user"

    def create_user(self, payload: UserCreate) -> UserRead:
        existing = self.repo.get_user(payload.id)
        if existing:
            return UserRead.model_validate(existing)

        if payload.email and self.repo.get_by_email(payload.email):
            raise ValidationError(f"Email {payload.email} jest już zajęty")

        user = UserModel(
            id=payload.id,
            name=payload.name,
            email=payload.email,
            role=self._role_for(payload.email),
        )
        created = self.repo.create_user(user)
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("Użytkownik", user_id)
        return UserRead.model_validate(user)
