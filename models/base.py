import time

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase, declared_attr


# sqlite only autoincrements INTEGER PRIMARY KEY columns
BigIntegerPK = BigInteger().with_variant(Integer(), "sqlite")


def now_ms() -> int:
     """Current wall-clock time in epoch milliseconds (the store's timestamp unit)."""
     return int(time.time() * 1000)


class Base(DeclarativeBase):
     """
     Base class for all SQLAlchemy models.
     Provides common configuration and mixins.
     """

     @declared_attr.directive
     def __tablename__(cls) -> str:
          """
          Automatically generate table name from class name.
          Example: FlatRequest -> flat_requests
          """
          import re
          name = re.sub(r'(?<!^)(?=[A-Z])', '_', cls.__name__).lower()
          # Pluralize (simple version)
          if name.endswith('y'):
               return name[:-1] + 'ies'
          elif name.endswith('s'):
               return name + 'es'
          return name + 's'
