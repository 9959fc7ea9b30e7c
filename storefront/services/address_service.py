from typing import List

from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import AuthorizationError, NotFoundError
from storefront.domain.schemas import AddressCreate, AddressOut
from storefront.repos.address_repo import AddressRepo
from storefront.services.order_service import require_user
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class AddressService:
    def __init__(self, db: Session):
        self.repo = AddressRepo(db)

    def list_addresses(self, caller: UserModel | None) -> List[AddressOut]:
        user = require_user(caller)
        return [AddressOut.model_validate(a) for a in self.repo.list_by_user(user.id)]

    def create_address(self, payload: AddressCreate, caller: UserModel | None) -> AddressOut:
        user = require_user(caller)

        #pierwszy adres uzytkownika zawsze domyslny
        is_default = payload.is_default or not self.repo.list_by_user(user.id)

        address = AddressModel(
            user_id=user.id,
            **payload.model_dump(exclude={"is_default"}),
            is_default=is_default,
        )
        created = self.repo.create_address(address)

        logger.info(f"Address {created.id} created for user {user.id} default={created.is_default}")
        return AddressOut.model_validate(created)

    def get_address(self, address_id: int, caller: UserModel | None) -> AddressOut:
        user = require_user(caller)
        address = self.repo.get_address(address_id)

        if not address:
            raise NotFoundError("Adres", address_id)
        if address.user_id != user.id:
            raise AuthorizationError("Brak dostępu do adresu")

        return AddressOut.model_validate(address)
