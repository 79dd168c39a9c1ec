"""Review payloads: what the staff UI sees and sends back."""

from __future__ import annotations

from .schema import (
    AnalysisPayload,
    ClusterMemberPayload,
    CommitResultPayload,
    DuplicateClusterPayload,
    ExecutionRequest,
    ExecutionResponse,
    GroupDecisionPayload,
    IdentityPayload,
    ImportRowPayload,
    MatchPayload,
    OrphanPayload,
    SummaryPayload,
    VendorGroupMemberPayload,
    VendorGroupPayload,
    VendorMergePayload,
    VendorMergeRequest,
)
from .translator import (
    analysis_payload,
    cluster_payload,
    execution_response,
    execution_rows,
    identity_payload,
    import_row,
    orphan_payload,
    parse_group_decisions,
    parse_vendor_groups,
    row_payload,
)

__all__ = [
    "AnalysisPayload",
    "ClusterMemberPayload",
    "CommitResultPayload",
    "DuplicateClusterPayload",
    "ExecutionRequest",
    "ExecutionResponse",
    "GroupDecisionPayload",
    "IdentityPayload",
    "ImportRowPayload",
    "MatchPayload",
    "OrphanPayload",
    "SummaryPayload",
    "VendorGroupMemberPayload",
    "VendorGroupPayload",
    "VendorMergePayload",
    "VendorMergeRequest",
    "analysis_payload",
    "cluster_payload",
    "execution_response",
    "execution_rows",
    "identity_payload",
    "import_row",
    "orphan_payload",
    "parse_group_decisions",
    "parse_vendor_groups",
    "row_payload",
]
