from sqlalchemy import BigInteger, Boolean, DateTime, func, Integer, JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import mapped_column, Mapped
from sqlalchemy.types import TypeDecorator
from datetime import datetime
from typing_extensions import Annotated


class Uint256(TypeDecorator):
    """Unbounded non-negative integer stored as its decimal string.

    Token amounts and prices are uint256 values that overflow BIGINT, so they are
    persisted as text and converted back to int on load.
    """

    impl = String(78)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = int(value)
        if value < 0:
            raise ValueError(f"uint256 can not be negative: {value}")
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


# Primary key types
BigIntegerPrimaryKeyType = Mapped[
    Annotated[int, mapped_column(BigInteger, primary_key=True)]
]
Uint256PrimaryKeyType = Mapped[Annotated[int, mapped_column(Uint256, primary_key=True)]]
StringPrimaryKeyType = Mapped[Annotated[str, mapped_column(String, primary_key=True)]]

# Normal types
BigIntegerType = Mapped[Annotated[int, mapped_column(BigInteger)]]
IntegerType = Mapped[Annotated[int, mapped_column(Integer)]]
BooleanType = Mapped[Annotated[bool, mapped_column(Boolean)]]
JsonType = Mapped[
    Annotated[dict, mapped_column(JSON().with_variant(JSONB(), "postgresql"))]
]
StringType = Mapped[Annotated[str, mapped_column(String)]]
Uint256Type = Mapped[Annotated[int, mapped_column(Uint256)]]

# Nullable types
NullableIntegerType = Mapped[Annotated[int, mapped_column(Integer, nullable=True)]]
NullableBigIntegerType = Mapped[
    Annotated[int, mapped_column(BigInteger, nullable=True)]
]
NullableStringType = Mapped[Annotated[str, mapped_column(String, nullable=True)]]

# Timestamp types
InsertedAtType = Mapped[
    Annotated[datetime, mapped_column(DateTime(timezone=True), default=func.now())]
]
UpdatedAtType = Mapped[
    Annotated[
        datetime,
        mapped_column(
            DateTime(timezone=True),
            default=func.now(),
            onupdate=func.now(),
        ),
    ]
]
