"""SQLAlchemy models for the policies and claims tables."""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class PolicyRow(Base):
    """Policy metadata and lifecycle status."""

    __tablename__ = "policies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    policy_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    policy_holder_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    maturity_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    suicide_coverage_after_years: Mapped[int] = mapped_column(Integer, default=1)
    covers_accident: Mapped[bool] = mapped_column(Boolean, default=True)
    covers_natural_death: Mapped[bool] = mapped_column(Boolean, default=True)
    covers_disease: Mapped[bool] = mapped_column(Boolean, default=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="ACTIVE"
    )  # ACTIVE | REJECTED | UNDER_REVIEW | CLAIMED


class ClaimRow(Base):
    """One adjudicated claim submission."""

    __tablename__ = "claims"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Not unique: references are short random tokens
    claim_reference: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    policy_number: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    claim_status: Mapped[str] = mapped_column(String(32), nullable=False)
    cause_of_death: Mapped[str | None] = mapped_column(String(255), nullable=True)

    deceased_full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    deceased_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    deceased_mobile: Mapped[str | None] = mapped_column(String(64), nullable=True)
    deceased_address: Mapped[str | None] = mapped_column(Text, nullable=True)

    nominee_full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    nominee_relationship: Mapped[str | None] = mapped_column(String(64), nullable=True)
    nominee_mobile: Mapped[str | None] = mapped_column(String(64), nullable=True)

    claim_form_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    death_certificate_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    doctor_report_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    police_report_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    ai_decision: Mapped[str] = mapped_column(String(32), nullable=False)
    ai_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
