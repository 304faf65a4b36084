"""Read access to shipping addresses in the relational store."""

from dataclasses import dataclass
from typing import Optional, Protocol

from fastapi import Depends
from libs.db.session import get_async_db
from services.store_service.models import Address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(frozen=True)
class AddressSnapshot:
    """Recipient details copied onto order rows at write time."""

    recipient_name: str
    phone: str
    address: str


class AddressLookup(Protocol):
    async def get_address(
        self, address_id: int, user_id: int
    ) -> Optional[AddressSnapshot]: ...


class AddressStore:
    """Looks up addresses scoped to their owner."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_address(
        self, address_id: int, user_id: int
    ) -> Optional[AddressSnapshot]:
        """Return the address only if it belongs to ``user_id``."""
        query = select(Address).where(
            Address.id == address_id,
            Address.user_id == user_id,
        )
        result = await self.db.execute(query)
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return AddressSnapshot(
            recipient_name=row.recipient_name,
            phone=row.phone,
            address=row.address,
        )


def get_address_store(db: AsyncSession = Depends(get_async_db)) -> AddressStore:
    return AddressStore(db)
