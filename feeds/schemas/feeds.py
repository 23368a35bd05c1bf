"""Feeds manager and job proposal value types.

These are what callers pass into and get back from FeedsStore. They are built
from ORM rows with model_validate(row), so the ORM stays inside the store.
"""

from datetime import datetime
from enum import Enum, IntEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class JobType(str, Enum):
    """Job types a feeds manager may propose."""

    FLUX_MONITOR = "fluxmonitor"
    OFFCHAIN_REPORTING = "offchainreporting"


class JobProposalStatus(IntEnum):
    """Lifecycle state of a job proposal.

    Stored as a small integer. The store accepts any transition between these
    values; legality of a transition is decided by the caller.
    """

    PENDING = 0
    APPROVED = 1
    REJECTED = 2
    CANCELLED = 3


class FeedsManager(BaseModel):
    """Registered feeds manager.

    id, created_at and updated_at are assigned by the store and stay None on
    a value that has not been persisted.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    uri: str
    name: str
    public_key: bytes
    job_types: list[JobType]
    network: str
    is_ocr_bootstrap_peer: bool = False

    created_at: datetime | None = None
    updated_at: datetime | None = None


class JobProposal(BaseModel):
    """Job proposal submitted by a feeds manager.

    job_id is None until a local job is linked; a linked job with id 0 is a
    different thing from no job at all.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    remote_uuid: UUID
    spec: str = ""
    status: JobProposalStatus = JobProposalStatus.PENDING
    feeds_manager_id: int
    job_id: int | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None
