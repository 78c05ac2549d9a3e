from sqlalchemy import BigInteger, Column, DateTime, Integer, Numeric, func
from sqlalchemy.orm import declarative_base, declared_attr

Base = declarative_base()

# VND amounts with two decimal places for commission fractions
Money = Numeric(18, 2, asdecimal=True)

# SQLite only autoincrements INTEGER primary keys
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


class TimestampMixin:
    """created_at / updated_at columns"""

    @declared_attr
    def created_at(cls):
        return Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
        )


class BaseModel(Base, TimestampMixin):
    """Base class for every table"""

    __abstract__ = True
