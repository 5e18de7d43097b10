"""Approval store collaborators."""

from .approval_store import ApprovalSnapshot, ApprovalStore
from .http_approval_store import HttpApprovalStore

__all__ = ["ApprovalSnapshot", "ApprovalStore", "HttpApprovalStore"]
