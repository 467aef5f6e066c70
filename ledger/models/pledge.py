import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ledger.db.base_class import Base


class PledgeStatus:
    DRAFT = "DRAFT"
    WAITING_FOR_PAYMENT = "WAITING_FOR_PAYMENT"
    SUCCESSFUL = "SUCCESSFUL"


class Pledge(Base):
    __tablename__ = "pledges"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=False, index=True)

    total = Column(Integer, nullable=False)
    # Может быть отрицательным, если указана причина
    donation = Column(Integer, nullable=False, default=0)
    reason = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default=PledgeStatus.DRAFT, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    options = relationship(
        "PledgeOption",
        back_populates="pledge",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class PledgeOption(Base):
    __tablename__ = "pledge_options"

    pledge_id = Column(String(36), ForeignKey("pledges.id"), primary_key=True)
    template_id = Column(Integer, ForeignKey("package_options.id"), primary_key=True)
    amount = Column(Integer, nullable=False)
    # Копия цены каталога на момент оформления
    price = Column(Integer, nullable=False)

    pledge = relationship("Pledge", back_populates="options")
