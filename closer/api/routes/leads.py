"""Lead classification endpoint."""

from fastapi import APIRouter

from closer.api.dependencies import ClassifyWorkflowDep
from closer.api.exceptions import StoreUnavailableError
from closer.api.models.control import ClassifyLeadsRequest, ClassifyLeadsResponse
from closer.classification import ClassifyLeadsInput
from closer.observability.logging import get_logger
from closer.observability.metrics import REQUEST_COUNT

logger = get_logger(__name__)

router = APIRouter(prefix="/leads")


@router.post("/classify", response_model=ClassifyLeadsResponse)
async def classify_leads(
    request: ClassifyLeadsRequest,
    workflow: ClassifyWorkflowDep,
) -> ClassifyLeadsResponse:
    """Classify every unclassified lead of a tenant."""
    result = await workflow.run(ClassifyLeadsInput(tenant_id=str(request.tenant_id)))
    if not result.success:
        REQUEST_COUNT.labels(endpoint="classify_leads", status="failed").inc()
        raise StoreUnavailableError(result.error or "Classification failed")

    REQUEST_COUNT.labels(endpoint="classify_leads", status="ok").inc()
    return ClassifyLeadsResponse(
        total=result.total,
        classified=result.classified,
        skipped=result.skipped,
        failed=result.failed,
        results=result.results,
    )
