from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_caller
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.schemas import AddressCreate, AddressOut
from storefront.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.get("/", response_model=List[AddressOut])
def list_addresses(
    caller: UserModel | None = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return AddressService(db).list_addresses(caller)


@router.post("/", response_model=AddressOut, status_code=201)
def create_address(
    payload: AddressCreate,
    caller: UserModel | None = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return AddressService(db).create_address(payload, caller)


@router.get("/{address_id}", response_model=AddressOut)
def get_address(
    address_id: int,
    caller: UserModel | None = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return AddressService(db).get_address(address_id, caller)
