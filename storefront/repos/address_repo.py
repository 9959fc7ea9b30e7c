from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel


class AddressRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_address(self, address_id: int) -> AddressModel | None:
        return self.db.get(AddressModel, address_id)

    def list_by_user(self, user_id: int) -> list[AddressModel]:
        return list(
            self.db.execute(
                select(AddressModel)
                .where(AddressModel.user_id == user_id)
                .order_by(AddressModel.is_default.desc(), AddressModel.id)
            ).scalars()
        )

    def create_address(self, address: AddressModel) -> AddressModel:
        try:
            if address.is_default:
                #tylko jeden domyslny adres na uzytkownika
                self.db.query(AddressModel).filter(
                    AddressModel.user_id == address.user_id,
                    AddressModel.is_default.is_(True),
                ).update({"is_default": False}, synchronize_session=False)

            self.db.add(address)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(address)
        return address
