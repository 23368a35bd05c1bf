"""Pydantic value types exchanged with the store."""

from feeds.schemas.feeds import (
    FeedsManager,
    JobProposal,
    JobProposalStatus,
    JobType,
)

__all__ = [
    "FeedsManager",
    "JobProposal",
    "JobProposalStatus",
    "JobType",
]
