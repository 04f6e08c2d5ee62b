from decimal import Decimal
from typing import Annotated, ClassVar

from sqlalchemy import JSON, Dialect, String, Text
from sqlalchemy.orm import DeclarativeBase, mapped_column
from sqlalchemy.types import TypeDecorator


class DecimalMappedToString(TypeDecorator[Decimal]):
    """
    Token amounts, prices and share ratios accumulate over the lifetime of a pool and must not pick
    up floating point drift. SQLite has no arbitrary-precision numeric type, so map these values to
    their exact string representation.
    """

    cache_ok = True
    impl = Text

    def process_bind_param(
        self,
        value: Decimal | None,
        dialect: Dialect,  # noqa: ARG002
    ) -> str | None:
        """
        Perform the Python type -> DB type conversion.
        """

        return None if value is None else str(value)

    def process_result_value(
        self,
        value: str | None,
        dialect: Dialect,  # noqa: ARG002
    ) -> Decimal | None:
        """
        Perform the DB type -> Python type conversion.
        """

        return None if value is None else Decimal(value)


Address = Annotated[str, mapped_column(String(42))]
EntityId = Annotated[str, mapped_column(String(200), primary_key=True)]
IdList = Annotated[list[str], mapped_column(JSON)]


class Base(DeclarativeBase):
    type_annotation_map: ClassVar = {
        # keys must be Python types (native or Annotated)
        # values must be SQLAlchemy types
        Decimal: DecimalMappedToString,
        list[str]: JSON,
        str: Text,
    }
