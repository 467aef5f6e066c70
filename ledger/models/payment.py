import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)

from ledger.db.base_class import Base


class PaymentMethod:
    PAYMENTSLIP = "PAYMENTSLIP"
    STRIPE = "STRIPE"
    POSTFINANCECARD = "POSTFINANCECARD"
    PAYPAL = "PAYPAL"


class PaymentStatus:
    WAITING = "WAITING"
    PAID = "PAID"


class PaymentType:
    PLEDGE = "PLEDGE"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    type = Column(String(16), nullable=False, default=PaymentType.PLEDGE)
    method = Column(String(32), nullable=False)
    total = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, index=True)

    # Идентификатор платежа у провайдера: защита от повторного использования
    psp_id = Column(String(128), nullable=True)
    # Сырые данные провайдера (для разбора вручную)
    psp_payload = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("method", "psp_id", name="uq_payments_method_psp_id"),
        Index("ix_payments_method_status", "method", "status"),
    )


class PledgePayment(Base):
    __tablename__ = "pledge_payments"

    pledge_id = Column(String(36), ForeignKey("pledges.id"), primary_key=True)
    payment_id = Column(String(36), ForeignKey("payments.id"), primary_key=True)
    payment_type = Column(String(16), nullable=False, default=PaymentType.PLEDGE)


class PaymentSource(Base):
    __tablename__ = "payment_sources"

    id = Column(Integer, primary_key=True, index=True)
    method = Column(String(32), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    psp_id = Column(String(128), nullable=False)
    psp_payload = Column(JSON, nullable=True)
