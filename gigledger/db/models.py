"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from gigledger.infrastructure.database.base import Base
from gigledger.infrastructure.database.types import UTCDateTime, utcnow


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Wallet(Base):
    __tablename__ = "wallets"
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_wallets_balance_nonneg"),)

    user_id = Column(String(36), primary_key=True)
    balance = Column(Integer, nullable=False, default=0)
    last_action = Column(String(255))
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, onupdate=utcnow)


class TokenTransaction(Base):
    __tablename__ = "token_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("wallets.user_id"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    tokens_in = Column(Integer, nullable=False, default=0)
    tokens_out = Column(Integer, nullable=False, default=0)
    # idempotency key for externally triggered credits (payment references)
    reference = Column(String(100), unique=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, index=True)

    wallet = relationship("Wallet")


class Job(Base):
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    employer_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    promotion_tag = Column(String(20), nullable=False, default="none")
    promotion_expires_at = Column(UTCDateTime)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)


class Profile(Base):
    __tablename__ = "profiles"

    # profiles share the identity provider's user id
    id = Column(String(36), primary_key=True)
    display_name = Column(String(150))
    promotion_tag = Column(String(20), nullable=False, default="none")
    promotion_expires_at = Column(UTCDateTime)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)


class JobApplication(Base):
    __tablename__ = "job_applications"
    __table_args__ = (UniqueConstraint("job_id", "applicant_id", name="uq_job_applications_job_applicant"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_id = Column(String(36), ForeignKey("jobs.id"), nullable=False, index=True)
    applicant_id = Column(String(36), nullable=False, index=True)
    cover_letter = Column(Text)
    bid_amount = Column(Integer)
    tokens_spent = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    job = relationship("Job")


class PaymentReceipt(Base):
    __tablename__ = "payment_receipts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    reference = Column(String(100), nullable=False, unique=True)
    event = Column(String(50), nullable=False)
    user_id = Column(String(36), index=True)
    amount_minor = Column(Integer, nullable=False, default=0)
    tokens = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="received")  # received, applied, failed, ignored
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    applied_at = Column(UTCDateTime)
