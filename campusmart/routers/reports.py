from fastapi import APIRouter, Depends, Request

from campusmart.db.session import get_db
from campusmart.models.report import Report, ReportCreate
from campusmart.services.log import log_activity
from campusmart.services.workflow import WorkflowSession, get_workflow

router = APIRouter()

@router.post("/products/{product_id}/report", response_model=Report)
async def report_product(
    product_id: str,
    body: ReportCreate,
    request: Request,
    workflow: WorkflowSession = Depends(get_workflow),
    db=Depends(get_db)
):
    report = await workflow.reports.report_product(workflow.user, product_id, body.reason)

    await log_activity(
        db,
        workflow.user,
        action="product_reported",
        details=f"Reported '{report.product_name}': {report.reason}",
        target_id=product_id,
        target_type="product",
        request=request
    )
    return report
