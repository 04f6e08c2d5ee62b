from typing import Annotated

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import mapped_column

ForeignKeyPoolId = Annotated[
    str,
    mapped_column(String(42), ForeignKey("pools.id"), index=True),
]
ForeignKeyTokenId = Annotated[
    str,
    mapped_column(String(42), ForeignKey("tokens.id"), index=True),
]
ForeignKeyUserId = Annotated[
    str,
    mapped_column(String(42), ForeignKey("users.id"), index=True),
]
ForeignKeyPositionId = Annotated[
    str,
    mapped_column(String(85), ForeignKey("positions.id"), index=True),
]
