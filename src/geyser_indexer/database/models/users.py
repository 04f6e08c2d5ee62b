from decimal import Decimal

from sqlalchemy.orm import Mapped

from .base import Base, EntityId


class UserTable(Base):
    __tablename__ = "users"

    id: Mapped[EntityId]
    operations: Mapped[int]
    earned: Mapped[Decimal]
    gysr_spent: Mapped[Decimal]
