"""SQLAlchemy ORM models.

Models represent database tables:
- feeds_managers: Registered counterparties allowed to propose jobs
- job_proposals: Job specs submitted by a feeds manager for approval
"""

from feeds.models.feeds_manager import FeedsManagerRecord
from feeds.models.job_proposal import JobProposalRecord

__all__ = ["FeedsManagerRecord", "JobProposalRecord"]
