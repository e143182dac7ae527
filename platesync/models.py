import secrets
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_id(prefix: str = "") -> str:
    """Generate a random string id such as church_1f2e..."""
    random_id = secrets.token_hex(12)
    return f"{prefix}_{random_id}" if prefix else random_id


class ChurchStatus:
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    DELETED = "DELETED"

    ALL = (ACTIVE, SUSPENDED, DELETED)


class UserRole:
    ACCOUNT_OWNER = "ACCOUNT_OWNER"
    ADMIN = "ADMIN"
    USHER = "USHER"

    ADMIN_ROLES = (ACCOUNT_OWNER, ADMIN)
    ASSIGNABLE = (ADMIN, USHER)


class BatchStatus:
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    FINALIZED = "FINALIZED"

    ALL = (OPEN, CLOSED, FINALIZED)


class DonationType:
    CASH = "CASH"
    CHECK = "CHECK"

    ALL = (CASH, CHECK)


class NotificationStatus:
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    NOT_REQUIRED = "NOT_REQUIRED"


class EmailTemplateType:
    WELCOME_EMAIL = "WELCOME_EMAIL"
    PASSWORD_RESET = "PASSWORD_RESET"
    DONATION_CONFIRMATION = "DONATION_CONFIRMATION"
    COUNT_REPORT = "COUNT_REPORT"

    ALL = (WELCOME_EMAIL, PASSWORD_RESET, DONATION_CONFIRMATION, COUNT_REPORT)


class SubscriptionPlan:
    NONE = "NONE"
    TRIAL = "TRIAL"
    MONTHLY = "MONTHLY"
    ANNUAL = "ANNUAL"


class SubscriptionStatus:
    TRIAL = "TRIAL"
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    EXPIRED = "EXPIRED"
    CANCELED = "CANCELED"


class Church(Base):
    __tablename__ = "churches"

    id = Column(String(64), primary_key=True, default=lambda: generate_id("church"))
    name = Column(String(255), nullable=False)
    status = Column(String(20), default=ChurchStatus.ACTIVE, nullable=False, index=True)
    contact_email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(255), nullable=True)
    state = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)
    logo_url = Column(String(500), nullable=True)
    website_url = Column(String(500), nullable=True)
    denomination = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    members_count = Column(Integer, default=0, nullable=False)
    account_owner_id = Column(String(64), nullable=True)
    last_login_date = Column(DateTime, nullable=True)
    registration_date = Column(DateTime, default=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    users = relationship("User", back_populates="church")
    subscription = relationship(
        "Subscription", back_populates="church", uselist=False, cascade="all, delete-orphan"
    )


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=lambda: generate_id("user"))
    church_id = Column(String(64), ForeignKey("churches.id"), nullable=False, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    profile_image_url = Column(String(500), nullable=True)
    role = Column(String(20), default=UserRole.USHER, nullable=False)
    is_account_owner = Column(Boolean, default=False, nullable=False)
    password_hash = Column(String(255), nullable=True)  # Null until the welcome flow sets it
    is_verified = Column(Boolean, default=False, nullable=False)
    password_reset_token = Column(String(255), nullable=True, index=True)
    password_reset_expires = Column(DateTime, nullable=True)
    email_notifications_enabled = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    church = relationship("Church", back_populates="users")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.email

    @property
    def is_admin(self) -> bool:
        return self.role in UserRole.ADMIN_ROLES


class GlobalAdmin(Base):
    __tablename__ = "global_admins"

    id = Column(String(64), primary_key=True, default=lambda: generate_id("gadmin"))
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    profile_image_url = Column(String(500), nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(String(64), ForeignKey("churches.id"), nullable=False, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    is_visitor = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)
    external_id = Column(String(255), nullable=True)
    external_system = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    donations = relationship("Donation", back_populates="member")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ServiceOption(Base):
    __tablename__ = "service_options"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(String(64), ForeignKey("churches.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    value = Column(String(255), nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Batch(Base):
    __tablename__ = "batches"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(String(64), ForeignKey("churches.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    date = Column(DateTime, nullable=False, default=utcnow)
    service = Column(String(255), nullable=True)
    status = Column(String(20), default=BatchStatus.OPEN, nullable=False, index=True)
    total_amount = Column(Numeric(10, 2), default=0, nullable=False)
    notes = Column(Text, nullable=True)

    primary_attestor_id = Column(String(64), nullable=True)
    primary_attestor_name = Column(String(255), nullable=True)
    primary_attestation_date = Column(DateTime, nullable=True)
    secondary_attestor_id = Column(String(64), nullable=True)
    secondary_attestor_name = Column(String(255), nullable=True)
    secondary_attestation_date = Column(DateTime, nullable=True)
    attestation_confirmed_by = Column(String(64), nullable=True)
    attestation_confirmation_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    donations = relationship(
        "Donation", back_populates="batch", order_by="Donation.date.desc()"
    )


class Donation(Base):
    __tablename__ = "donations"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(String(64), ForeignKey("churches.id"), nullable=False, index=True)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=True, index=True)
    date = Column(DateTime, nullable=False, default=utcnow)
    amount = Column(Numeric(10, 2), nullable=False)
    donation_type = Column(String(10), nullable=False, default=DonationType.CASH)
    check_number = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    notification_status = Column(
        String(20), default=NotificationStatus.NOT_REQUIRED, nullable=False
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    batch = relationship("Batch", back_populates="donations")
    member = relationship("Member", back_populates="donations")


class ReportRecipient(Base):
    __tablename__ = "report_recipients"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(String(64), ForeignKey("churches.id"), nullable=False, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class EmailTemplate(Base):
    __tablename__ = "email_templates"
    __table_args__ = (UniqueConstraint("church_id", "template_type", name="uq_email_template_type"),)

    id = Column(Integer, primary_key=True, index=True)
    # Null church_id marks a system template managed by global admins
    church_id = Column(String(64), ForeignKey("churches.id"), nullable=True, index=True)
    template_type = Column(String(50), nullable=False)
    subject = Column(String(500), nullable=False)
    body_html = Column(Text, nullable=False)
    body_text = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(String(64), ForeignKey("churches.id"), unique=True, nullable=False)
    plan = Column(String(20), default=SubscriptionPlan.TRIAL, nullable=False)
    status = Column(String(20), default=SubscriptionStatus.TRIAL, nullable=False)
    trial_start_date = Column(DateTime, nullable=True)
    trial_end_date = Column(DateTime, nullable=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    canceled_at = Column(DateTime, nullable=True)
    stripe_customer_id = Column(String(255), nullable=True)
    stripe_subscription_id = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    church = relationship("Church", back_populates="subscription")


class PlanningCenterToken(Base):
    __tablename__ = "planning_center_tokens"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(String(64), ForeignKey("churches.id"), unique=True, nullable=False)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=True)
    access_token = Column(Text, nullable=False)  # Fernet encrypted
    refresh_token = Column(Text, nullable=True)  # Fernet encrypted
    expires_at = Column(DateTime, nullable=True)
    last_sync_date = Column(DateTime, nullable=True)
    people_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class VerificationCode(Base):
    __tablename__ = "verification_codes"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    code = Column(String(10), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class SystemConfig(Base):
    __tablename__ = "system_config"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(255), unique=True, nullable=False)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
