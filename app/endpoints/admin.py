from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.schemas.course import ReconcileReport
from app.schemas.response import APIResponse
from app.services.course import course_service
from app.services.course_aggregate import course_aggregate_service
from app.utils import deps

router = APIRouter()


@router.post(
    "/courses/reconcile",
    response_model=APIResponse[List[ReconcileReport]],
    dependencies=[Depends(deps.require_roles(RoleEnum.ADMIN))]
)
def reconcile_all_courses(*, db: Session = Depends(deps.get_transactional_db)):
    reports = course_aggregate_service.reconcile_all(db)
    repaired = sum(1 for r in reports if r["changed"])
    return APIResponse(message=f"Reconciled {len(reports)} courses, {repaired} repaired", data=reports)


@router.post(
    "/courses/{course_id}/reconcile",
    response_model=APIResponse[ReconcileReport],
    dependencies=[Depends(deps.require_roles(RoleEnum.ADMIN))]
)
def reconcile_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID
):
    course = course_service.get_course_or_404(db, course_id)
    report = course_aggregate_service.reconcile(db, course)
    return APIResponse(message="Course aggregates reconciled", data=report)
