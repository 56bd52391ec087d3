"""
SQLAlchemy Policy Ledger

Async ORM implementation over the policies and claims tables.
"""
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from lifeclaim.core.models import ClaimantDetails, ClaimRecord, Policy
from lifeclaim.core.states import DecisionKind, DocumentRole, PolicyStatus
from lifeclaim.exceptions import LedgerError
from lifeclaim.ledger.base import PolicyLedger
from lifeclaim.ledger.tables import Base, ClaimRow, PolicyRow

logger = logging.getLogger(__name__)

# Claim row column holding each document's storage location
_LOCATION_COLUMNS = {
    DocumentRole.CLAIM_FORM: "claim_form_url",
    DocumentRole.DEATH_CERTIFICATE: "death_certificate_url",
    DocumentRole.DOCTOR_REPORT: "doctor_report_url",
    DocumentRole.POLICE_REPORT: "police_report_url",
}

_CLAIMANT_COLUMNS = list(ClaimantDetails.model_fields)


class SqlPolicyLedger(PolicyLedger):
    """Ledger backed by any SQLAlchemy async engine."""

    def __init__(self, engine: AsyncEngine):
        """
        Initialize the ledger.

        Args:
            engine: SQLAlchemy async engine
        """
        self.engine = engine
        self._session_maker = async_sessionmaker(engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "SqlPolicyLedger":
        return cls(create_async_engine(database_url, echo=echo))

    async def create_schema(self) -> None:
        """Create the policies and claims tables if they do not exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Ledger schema ready")

    async def close(self) -> None:
        await self.engine.dispose()

    async def find_policy(self, policy_number: str) -> Optional[Policy]:
        try:
            async with self._session_maker() as session:
                row = await self._policy_row(session, policy_number)
                return _to_policy(row) if row else None
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to load policy {policy_number}", e)

    async def count_prior_claims(self, policy_number: str, status: DecisionKind) -> int:
        query = (
            select(func.count(ClaimRow.id))
            .where(ClaimRow.policy_number == policy_number)
            .where(ClaimRow.claim_status == status.value)
        )
        try:
            async with self._session_maker() as session:
                result = await session.execute(query)
                return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to count claims for policy {policy_number}", e)

    async def save_claim(self, record: ClaimRecord) -> None:
        await self.commit(record)

    async def update_policy_status(self, policy: Policy, new_status: PolicyStatus) -> None:
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    await self._write_status(session, policy, new_status)
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to update policy {policy.policy_number}", e)
        policy.status = new_status

    async def commit(
        self,
        record: ClaimRecord,
        policy: Optional[Policy] = None,
        new_status: Optional[PolicyStatus] = None,
    ) -> None:
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    session.add(_to_claim_row(record))
                    await session.flush()
                    if policy is not None and new_status is not None:
                        await self._write_status(session, policy, new_status)
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to commit claim {record.claim_reference}", e)

        logger.info(f"Saved claim {record.claim_reference} ({record.status.value}) for policy {record.policy_number}")
        if policy is not None and new_status is not None:
            policy.status = new_status
            logger.info(f"Policy {policy.policy_number} status set to {new_status.value}")

    async def get_claim(self, claim_reference: str) -> Optional[ClaimRecord]:
        query = (
            select(ClaimRow)
            .where(ClaimRow.claim_reference == claim_reference)
            .order_by(ClaimRow.id.desc())
            .limit(1)
        )
        try:
            async with self._session_maker() as session:
                row = (await session.execute(query)).scalar_one_or_none()
                return _to_claim_record(row) if row else None
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to load claim {claim_reference}", e)

    async def list_claims(self, policy_number: str) -> List[ClaimRecord]:
        query = (
            select(ClaimRow)
            .where(ClaimRow.policy_number == policy_number)
            .order_by(ClaimRow.id)
        )
        try:
            async with self._session_maker() as session:
                rows = (await session.execute(query)).scalars().all()
                return [_to_claim_record(row) for row in rows]
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to list claims for policy {policy_number}", e)

    async def save_policy(self, policy: Policy) -> None:
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    row = await self._policy_row(session, policy.policy_number)
                    if row is None:
                        row = PolicyRow(policy_number=policy.policy_number)
                        session.add(row)
                    _copy_policy_onto(row, policy)
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to save policy {policy.policy_number}", e)

    async def _policy_row(self, session: AsyncSession, policy_number: str) -> Optional[PolicyRow]:
        query = select(PolicyRow).where(PolicyRow.policy_number == policy_number)
        return (await session.execute(query)).scalar_one_or_none()

    async def _write_status(
        self,
        session: AsyncSession,
        policy: Policy,
        new_status: PolicyStatus,
    ) -> None:
        row = await self._policy_row(session, policy.policy_number)
        if row is None:
            raise LedgerError(f"Policy {policy.policy_number} does not exist")
        row.status = new_status.value


def _to_policy(row: PolicyRow) -> Policy:
    return Policy(
        policy_number=row.policy_number,
        policy_holder_name=row.policy_holder_name,
        date_of_birth=row.date_of_birth,
        issue_date=row.issue_date,
        maturity_date=row.maturity_date,
        suicide_coverage_after_years=row.suicide_coverage_after_years,
        covers_accident=row.covers_accident,
        covers_natural_death=row.covers_natural_death,
        covers_disease=row.covers_disease,
        status=PolicyStatus(row.status),
    )


def _copy_policy_onto(row: PolicyRow, policy: Policy) -> None:
    for name, value in policy.model_dump(exclude={"policy_number", "status"}).items():
        setattr(row, name, value)
    row.status = policy.status.value


def _to_claim_row(record: ClaimRecord) -> ClaimRow:
    row = ClaimRow(
        claim_reference=record.claim_reference,
        policy_number=record.policy_number,
        claim_status=record.status.value,
        cause_of_death=record.cause_of_death,
        ai_decision=record.decision.value,
        ai_reason=record.reason,
        created_at=record.created_at,
    )
    for name in _CLAIMANT_COLUMNS:
        setattr(row, name, getattr(record.claimant, name))
    for role, column in _LOCATION_COLUMNS.items():
        setattr(row, column, record.location(role))
    return row


def _to_claim_record(row: ClaimRow) -> ClaimRecord:
    return ClaimRecord(
        claim_reference=row.claim_reference,
        policy_number=row.policy_number,
        cause_of_death=row.cause_of_death,
        claimant=ClaimantDetails(**{name: getattr(row, name) for name in _CLAIMANT_COLUMNS}),
        document_locations={role: getattr(row, column) for role, column in _LOCATION_COLUMNS.items()},
        decision=DecisionKind(row.ai_decision),
        reason=row.ai_reason or "",
        created_at=row.created_at,
    )
