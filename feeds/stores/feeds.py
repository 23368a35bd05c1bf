"""Feeds store.

Durable create/read/list/count for feeds managers and job proposals, plus
status updates for proposals.

Every operation takes two keyword-only context arguments:
- timeout: deadline in seconds for this call (defaults to the store's)
- session: a caller-owned AsyncSession to enlist in; the store then neither
  commits nor rolls back, the caller owns the transaction

Database failures are translated into feeds.errors classes. The store does
not log or retry.
"""

import asyncio
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from feeds.errors import ConnectivityError, ConstraintViolationError, FeedsStoreError, NotFoundError
from feeds.models import FeedsManagerRecord, JobProposalRecord
from feeds.schemas import FeedsManager, JobProposal, JobProposalStatus
from feeds.settings import Settings, get_settings

# Sentinel so that an explicit timeout=None can disable the store default.
_DEFAULT = object()

# Ids are BIGINT, so a value outside that range cannot name a row.
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _is_int64(value: int) -> bool:
    return _INT64_MIN <= value <= _INT64_MAX


class FeedsStore:
    """Repository for feeds managers and job proposals."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        default_timeout: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._default_timeout = default_timeout

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
    ) -> "FeedsStore":
        """Build a store using the configured operation timeout."""
        settings = settings or get_settings()
        return cls(session_factory, default_timeout=settings.db_operation_timeout_seconds)

    @asynccontextmanager
    async def _session(
        self,
        session: AsyncSession | None,
        timeout: float | None | object,
    ) -> AsyncGenerator[AsyncSession, None]:
        """Scope one operation: deadline, transaction and error translation."""
        deadline = self._default_timeout if timeout is _DEFAULT else timeout
        try:
            async with asyncio.timeout(deadline):
                if session is not None:
                    yield session
                    return

                async with self._session_factory() as own:
                    try:
                        yield own
                        await own.commit()
                    except Exception:
                        await own.rollback()
                        raise
        except TimeoutError as exc:
            raise ConnectivityError("database operation timed out") from exc
        except IntegrityError as exc:
            raise ConstraintViolationError(str(exc.orig)) from exc
        except (OperationalError, InterfaceError) as exc:
            raise ConnectivityError(str(exc.orig)) from exc
        except DBAPIError as exc:
            if exc.connection_invalidated:
                raise ConnectivityError(str(exc.orig)) from exc
            raise FeedsStoreError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise FeedsStoreError(str(exc)) from exc

    # Feeds managers

    async def create_manager(
        self,
        manager: FeedsManager,
        *,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> int:
        """Persist a new feeds manager.

        Values are stored as given; validating them is up to the caller.

        Args:
            manager: Manager to create. Its id is ignored.

        Returns:
            The id assigned to the new manager.
        """
        stmt = (
            insert(FeedsManagerRecord)
            .values(
                uri=manager.uri,
                name=manager.name,
                public_key=manager.public_key,
                job_types=[job_type.value for job_type in manager.job_types],
                network=manager.network,
                is_ocr_bootstrap_peer=manager.is_ocr_bootstrap_peer,
            )
            .returning(FeedsManagerRecord.id)
        )
        async with self._session(session, timeout) as s:
            result = await s.execute(stmt)
            return result.scalar_one()

    async def count_managers(
        self,
        *,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> int:
        """Count feeds managers."""
        async with self._session(session, timeout) as s:
            result = await s.execute(select(func.count()).select_from(FeedsManagerRecord))
            return result.scalar_one()

    async def list_managers(
        self,
        *,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> list[FeedsManager]:
        """List all feeds managers in insertion order."""
        async with self._session(session, timeout) as s:
            result = await s.execute(select(FeedsManagerRecord).order_by(FeedsManagerRecord.id))
            return [FeedsManager.model_validate(r) for r in result.scalars().all()]

    async def get_manager(
        self,
        manager_id: int,
        *,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> FeedsManager:
        """Get a feeds manager by id.

        Raises:
            NotFoundError: No manager has this id.
        """
        if not _is_int64(manager_id):
            raise NotFoundError("feeds manager", manager_id)

        async with self._session(session, timeout) as s:
            record = await s.get(FeedsManagerRecord, manager_id)
            if record is None:
                raise NotFoundError("feeds manager", manager_id)
            return FeedsManager.model_validate(record)

    async def get_managers(
        self,
        manager_ids: Sequence[int],
        *,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> list[FeedsManager]:
        """Get the feeds managers matching the given ids.

        Unknown ids are skipped. Results are ordered by id.
        """
        manager_ids = [i for i in manager_ids if _is_int64(i)]
        if not manager_ids:
            return []

        query = (
            select(FeedsManagerRecord)
            .where(FeedsManagerRecord.id.in_(manager_ids))
            .order_by(FeedsManagerRecord.id)
        )
        async with self._session(session, timeout) as s:
            result = await s.execute(query)
            return [FeedsManager.model_validate(r) for r in result.scalars().all()]

    # Job proposals

    async def create_job_proposal(
        self,
        proposal: JobProposal,
        *,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> int:
        """Persist a new job proposal.

        Proposals always start out pending and without a linked job.

        Args:
            proposal: Proposal to create. Its id and job_id are ignored.

        Returns:
            The id assigned to the new proposal.

        Raises:
            ValueError: The proposal is not pending.
            ConstraintViolationError: feeds_manager_id references no manager.
        """
        if proposal.status != JobProposalStatus.PENDING:
            raise ValueError(
                f"job proposals must be created as pending, got {proposal.status.name.lower()}"
            )
        if not _is_int64(proposal.feeds_manager_id):
            raise ConstraintViolationError(
                f"feeds manager id out of range: {proposal.feeds_manager_id}"
            )

        stmt = (
            insert(JobProposalRecord)
            .values(
                remote_uuid=proposal.remote_uuid,
                spec=proposal.spec,
                status=JobProposalStatus.PENDING,
                job_id=None,
                feeds_manager_id=proposal.feeds_manager_id,
            )
            .returning(JobProposalRecord.id)
        )
        async with self._session(session, timeout) as s:
            result = await s.execute(stmt)
            return result.scalar_one()

    async def count_job_proposals(
        self,
        *,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> int:
        """Count job proposals."""
        async with self._session(session, timeout) as s:
            result = await s.execute(select(func.count()).select_from(JobProposalRecord))
            return result.scalar_one()

    async def list_job_proposals(
        self,
        *,
        feeds_manager_id: int | None = None,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> list[JobProposal]:
        """List job proposals in insertion order.

        Args:
            feeds_manager_id: Only return proposals owned by this manager.
        """
        if feeds_manager_id is not None and not _is_int64(feeds_manager_id):
            return []

        query = select(JobProposalRecord).order_by(JobProposalRecord.id)
        if feeds_manager_id is not None:
            query = query.where(JobProposalRecord.feeds_manager_id == feeds_manager_id)

        async with self._session(session, timeout) as s:
            result = await s.execute(query)
            return [JobProposal.model_validate(r) for r in result.scalars().all()]

    async def get_job_proposal(
        self,
        proposal_id: int,
        *,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> JobProposal:
        """Get a job proposal by id.

        Raises:
            NotFoundError: No proposal has this id.
        """
        if not _is_int64(proposal_id):
            raise NotFoundError("job proposal", proposal_id)

        async with self._session(session, timeout) as s:
            record = await s.get(JobProposalRecord, proposal_id)
            if record is None:
                raise NotFoundError("job proposal", proposal_id)
            return JobProposal.model_validate(record)

    async def get_job_proposal_by_remote_uuid(
        self,
        remote_uuid: UUID,
        *,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> JobProposal:
        """Get the most recent job proposal carrying a remote UUID.

        Raises:
            NotFoundError: No proposal carries this UUID.
        """
        query = (
            select(JobProposalRecord)
            .where(JobProposalRecord.remote_uuid == remote_uuid)
            .order_by(JobProposalRecord.id.desc())
            .limit(1)
        )
        async with self._session(session, timeout) as s:
            result = await s.execute(query)
            record = result.scalar_one_or_none()
            if record is None:
                raise NotFoundError("job proposal", remote_uuid)
            return JobProposal.model_validate(record)

    async def update_job_proposal_status(
        self,
        proposal_id: int,
        status: JobProposalStatus,
        *,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> None:
        """Set the status of a job proposal.

        Any status may follow any other, including itself.

        Raises:
            ValueError: status is not a JobProposalStatus value.
            NotFoundError: No proposal has this id.
        """
        status = JobProposalStatus(status)
        if not _is_int64(proposal_id):
            raise NotFoundError("job proposal", proposal_id)

        stmt = (
            update(JobProposalRecord)
            .where(JobProposalRecord.id == proposal_id)
            .values(status=status)
        )
        async with self._session(session, timeout) as s:
            result = await s.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("job proposal", proposal_id)

    async def approve_job_proposal(
        self,
        proposal_id: int,
        job_id: int,
        *,
        timeout: float | None | object = _DEFAULT,
        session: AsyncSession | None = None,
    ) -> None:
        """Mark a job proposal approved and link the job created from it.

        Raises:
            ValueError: job_id does not fit a BIGINT.
            NotFoundError: No proposal has this id.
        """
        if not _is_int64(job_id):
            raise ValueError(f"job id out of range: {job_id}")
        if not _is_int64(proposal_id):
            raise NotFoundError("job proposal", proposal_id)

        stmt = (
            update(JobProposalRecord)
            .where(JobProposalRecord.id == proposal_id)
            .values(status=JobProposalStatus.APPROVED, job_id=job_id)
        )
        async with self._session(session, timeout) as s:
            result = await s.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("job proposal", proposal_id)
