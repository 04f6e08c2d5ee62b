from decimal import Decimal

from sqlalchemy.orm import Mapped

from .base import Base, EntityId


class TokenTable(Base):
    __tablename__ = "tokens"

    id: Mapped[EntityId]
    decimals: Mapped[int]
    name: Mapped[str | None]
    symbol: Mapped[str | None]
    price: Mapped[Decimal]
    updated: Mapped[int]
