import uuid

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from ledger.db.base_class import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    # Один email, один пользователь (подтверждённый или «заглушка»)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    verified = Column(Boolean, default=False, nullable=False)
    address_id = Column(Integer, ForeignKey("addresses.id"), nullable=True)

    address = relationship("Address", lazy="selectin")


class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    line1 = Column(String, nullable=False)
    line2 = Column(String, nullable=True)
    postal_code = Column(String, nullable=False)
    city = Column(String, nullable=False)
    country = Column(String, nullable=False)
