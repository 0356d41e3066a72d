"""Classify-leads workflow.

Batch job that classifies every lead of a tenant that has no classification
yet, typically after a bulk campaign. Calls are sequential with a fixed
delay between them to stay under provider rate limits.
"""

import asyncio
import time
from dataclasses import dataclass, field
from uuid import UUID

from closer.classification.classifier import OutcomeClassifier, apply_classification_to_lead
from closer.config.models.control import ClassificationConfig
from closer.conversation.models import Classification, Role
from closer.conversation.store import ConversationStore, LeadStore
from closer.db.errors import StoreError
from closer.observability.logging import get_logger
from closer.observability.metrics import WORKFLOW_EXECUTIONS, WORKFLOW_LATENCY

logger = get_logger(__name__)


def _empty_counts() -> dict[str, int]:
    return {c.value: 0 for c in Classification}


@dataclass
class ClassifyLeadsInput:
    """Input for the classify-leads workflow."""

    tenant_id: str


@dataclass
class ClassifyLeadsOutput:
    """Output from the classify-leads workflow."""

    total: int
    classified: int
    skipped: int
    results: dict[str, int] = field(default_factory=_empty_counts)
    failed: int = 0
    success: bool = True
    error: str | None = None


class ClassifyLeadsWorkflow:
    """Workflow to classify a tenant's unclassified leads.

    This workflow:
    1. Lists the tenant's leads without a classification
    2. Loads each lead's latest conversation
    3. Skips leads with no conversation or no user messages
    4. Classifies and applies the result, pausing between calls

    Idempotent: classified leads drop out of the unclassified listing.
    """

    WORKFLOW_NAME = "classify-leads"

    def __init__(
        self,
        classifier: OutcomeClassifier,
        lead_store: LeadStore,
        conversation_store: ConversationStore,
        config: ClassificationConfig | None = None,
    ) -> None:
        self._classifier = classifier
        self._leads = lead_store
        self._conversations = conversation_store
        self._config = config or ClassificationConfig()

    async def run(self, input_data: ClassifyLeadsInput) -> ClassifyLeadsOutput:
        """Execute the workflow.

        Args:
            input_data: Workflow input with the tenant to process

        Returns:
            ClassifyLeadsOutput with totals and per-class counts
        """
        try:
            tenant_id = UUID(input_data.tenant_id)
        except ValueError:
            return ClassifyLeadsOutput(
                total=0,
                classified=0,
                skipped=0,
                success=False,
                error=f"Invalid tenant_id: {input_data.tenant_id}",
            )

        start = time.perf_counter()
        try:
            output = await self._classify_tenant(tenant_id)
        except StoreError as e:
            WORKFLOW_EXECUTIONS.labels(workflow_name=self.WORKFLOW_NAME, status="error").inc()
            logger.error("classify_leads_failed", tenant_id=str(tenant_id), error=str(e))
            return ClassifyLeadsOutput(
                total=0,
                classified=0,
                skipped=0,
                success=False,
                error=str(e),
            )

        WORKFLOW_EXECUTIONS.labels(workflow_name=self.WORKFLOW_NAME, status="success").inc()
        WORKFLOW_LATENCY.labels(workflow_name=self.WORKFLOW_NAME).observe(
            time.perf_counter() - start
        )
        logger.info(
            "leads_classified",
            tenant_id=str(tenant_id),
            total=output.total,
            classified=output.classified,
            skipped=output.skipped,
            failed=output.failed,
            results=output.results,
        )
        return output

    async def _classify_tenant(self, tenant_id: UUID) -> ClassifyLeadsOutput:
        leads = await self._leads.list_unclassified(tenant_id)
        output = ClassifyLeadsOutput(total=len(leads), classified=0, skipped=0)

        for lead in leads:
            conversation = await self._conversations.get_latest_for_lead(lead.id)
            if conversation is None:
                output.skipped += 1
                continue

            messages = await self._conversations.list_messages(conversation.id)
            if not any(m.role == Role.USER for m in messages):
                output.skipped += 1
                continue

            if output.classified or output.failed:
                await asyncio.sleep(self._config.inter_call_delay_seconds)

            classification = await self._classifier.classify([m.to_turn() for m in messages])
            try:
                await apply_classification_to_lead(
                    self._leads, lead.id, classification, lead.stage or "Nuevo"
                )
            except StoreError as e:
                output.failed += 1
                logger.error("lead_classification_write_failed", lead_id=str(lead.id), error=str(e))
                continue

            output.results[classification.value] += 1
            output.classified += 1

        return output
