"""
Provisioning Orchestrator

Turns a ``StatsReport`` into a formatted spreadsheet owned by the
requesting user.  The pipeline is strictly sequential::

    Created -> DataWritten -> Formatted -> OwnershipTransferred -> AccessRevoked

Each remote call finishes before the next one is issued.  A failure in any
state aborts the run; steps already completed are not undone, so a
half-formatted document still owned by the service account can be left
behind.  Every run creates a new spreadsheet.

The two service capabilities are injected:

    sheets.create(title) -> Document
    sheets.write_range(spreadsheet_id, range_ref, values)
    sheets.batch_format(spreadsheet_id, requests)
    access.grant_owner(file_id, email)
    access.list_permissions(file_id) -> list[Permission]
    access.delete_permission(file_id, permission_id)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from albion_sheets.access import RevokePolicy, revoke_automation_access, transfer_ownership
from albion_sheets.errors import ProvisioningError
from albion_sheets.layout import LayoutPlan, plan_layout
from albion_sheets.models import Document, StatsReport
from albion_sheets.row_mapper import Grid, map_section

logger = logging.getLogger("albion.provisioner")

TITLE_PREFIX = "AlbionStats"
DEFAULT_SHEET_NAME = "Sheet1"


class PipelineState(str, Enum):
    CREATED = "Created"
    DATA_WRITTEN = "DataWritten"
    FORMATTED = "Formatted"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"
    ACCESS_REVOKED = "AccessRevoked"


PIPELINE_ORDER = list(PipelineState)


@dataclass
class StepRecord:
    state: PipelineState
    timestamp: float


@dataclass
class ProvisioningResult:
    """Outcome of one run: the document plus the states it passed through."""
    document: Optional[Document] = None
    steps: list[StepRecord] = field(default_factory=list)
    revoked_permission_ids: list[str] = field(default_factory=list)

    @property
    def state(self) -> Optional[PipelineState]:
        return self.steps[-1].state if self.steps else None

    @property
    def completed(self) -> bool:
        return self.state is PipelineState.ACCESS_REVOKED

    def to_audit_dict(self) -> dict:
        return {
            "document_id": self.document.id if self.document else None,
            "url": self.document.url if self.document else None,
            "title": self.document.title if self.document else None,
            "steps": [{"state": s.state.value, "timestamp": s.timestamp} for s in self.steps],
            "revoked_permission_ids": list(self.revoked_permission_ids),
            "completed": self.completed,
        }


def spreadsheet_title(now: datetime) -> str:
    """``AlbionStats-<year>-<month>-<day>-<epochMillis>``.

    The month is zero-based (January is 0) to stay consistent with titles
    produced by earlier versions of the guild tool.
    """
    epoch_ms = int(now.timestamp() * 1000)
    return f"{TITLE_PREFIX}-{now.year}-{now.month - 1}-{now.day}-{epoch_ms}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Provisioner:
    """Creates, fills, formats and hands over one spreadsheet per report.

    Parameters
    ----------
    sheets : SheetsService-like
        Spreadsheet capability.
    access : DriveAccessService-like
        Permission capability.
    sheet_name : str
        Tab name used in A1 write references.
    revoke_policy : RevokePolicy
        How leftover non-owner grants are handled.
    clock : callable
        Returns the current ``datetime``; used for the document title.
    """

    def __init__(
        self,
        sheets,
        access,
        sheet_name: str = DEFAULT_SHEET_NAME,
        revoke_policy: RevokePolicy = RevokePolicy.STRICT,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.sheets = sheets
        self.access = access
        self.sheet_name = sheet_name
        self.revoke_policy = revoke_policy
        self.clock = clock

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def provision(self, report: StatsReport) -> ProvisioningResult:
        """Run the full pipeline and return the completed result.

        Raises a ``ProvisioningError`` subclass on the first failure; its
        ``state`` attribute names the state that could not be reached.
        """
        # Map and plan before touching the remote services
        grids = {
            "aggregate": map_section(report.aggregate),
            "members": map_section(report.members),
            "solo": map_section(report.solo),
        }
        plan = plan_layout(
            len(report.aggregate.rows), len(report.members.rows), len(report.solo.rows)
        )

        result = ProvisioningResult()
        steps = (
            (PipelineState.CREATED, lambda: self._create(result)),
            (PipelineState.DATA_WRITTEN, lambda: self._write_data(result.document, plan, grids)),
            (PipelineState.FORMATTED, lambda: self._apply_formatting(result.document, plan)),
            (PipelineState.OWNERSHIP_TRANSFERRED,
             lambda: transfer_ownership(self.access, result.document.id, report.owner_email)),
            (PipelineState.ACCESS_REVOKED, lambda: self._revoke(result, report.owner_email)),
        )

        for state, step in steps:
            try:
                step()
            except ProvisioningError as exc:
                exc.state = state.value
                logger.error(
                    "Provisioning aborted entering %s (%s error): %s",
                    state.value, exc.kind, exc,
                )
                raise
            result.steps.append(StepRecord(state, time.time()))
            logger.info("Pipeline state -> %s", state.value)

        logger.info("Provisioned %s for %s", result.document.url, report.owner_email)
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    def _create(self, result: ProvisioningResult) -> None:
        title = spreadsheet_title(self.clock())
        result.document = self.sheets.create(title)

    def _write_data(self, document: Document, plan: LayoutPlan, grids: dict[str, Grid]) -> None:
        for name, block in (
            ("aggregate", plan.aggregate_block),
            ("members", plan.member_block),
            ("solo", plan.solo_block),
        ):
            self.sheets.write_range(document.id, block.to_a1(self.sheet_name), grids[name])

    def _apply_formatting(self, document: Document, plan: LayoutPlan) -> None:
        # merges first so the colour band lands on the merged title cell
        self.sheets.batch_format(document.id, plan.merge_requests())
        self.sheets.batch_format(document.id, plan.header_requests())
        self.sheets.batch_format(document.id, plan.number_format_requests())

    def _revoke(self, result: ProvisioningResult, owner_email: str) -> None:
        document = result.document
        revoked, remaining = revoke_automation_access(
            self.access, document.id, owner_email, self.revoke_policy
        )
        result.revoked_permission_ids = revoked
        document.permissions = remaining
