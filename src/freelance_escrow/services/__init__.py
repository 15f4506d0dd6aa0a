"""Application services - use case orchestration."""

from freelance_escrow.services.escrow_service import EscrowFlowService
from freelance_escrow.services.job_service import JobService

__all__ = ["EscrowFlowService", "JobService"]
