"""JobProposal model.

A job proposal is a job spec sent by a feeds manager. It starts out pending and
is later approved, rejected or cancelled. job_id links the proposal to the job
created locally once it is approved.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    SmallInteger,
    Text,
    TypeDecorator,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from feeds.models.feeds_manager import BigIntegerPK
from feeds.schemas.feeds import JobProposalStatus
from feeds.stores.postgres import Base


class JobProposalStatusType(TypeDecorator):
    """JobProposalStatus stored as its small integer value."""

    impl = SmallInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(JobProposalStatus(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return JobProposalStatus(value)


class JobProposalRecord(Base):
    """Job proposal submitted by a feeds manager."""

    __tablename__ = "job_proposals"
    __table_args__ = (
        CheckConstraint("status BETWEEN 0 AND 3", name="ck_job_proposals_status"),
    )

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)

    # Identifier assigned by the feeds manager (not unique here)
    remote_uuid: Mapped[UUID] = mapped_column(Uuid, index=True)
    spec: Mapped[str] = mapped_column(Text, default="")

    # 0=pending, 1=approved, 2=rejected, 3=cancelled
    status: Mapped[JobProposalStatus] = mapped_column(
        JobProposalStatusType,
        default=JobProposalStatus.PENDING,
    )

    # Local job created from this proposal, set on approval
    job_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    # Relations
    feeds_manager_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("feeds_managers.id"),
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<JobProposal {self.id} {self.remote_uuid} status={self.status}>"
