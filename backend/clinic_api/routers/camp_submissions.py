from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from clinic_api.db.session import get_db
from clinic_api.deps import get_current_user
from clinic_api.models.user import User
from clinic_api.schemas.camp_submission import (
    CampLogPage,
    CampSubmissionDeleted,
    CampSubmissionIn,
    CampSubmissionOut,
    CampSubmissionPage,
    CampTargetLogPage,
)
from clinic_api.services import camp_submissions as camp_service

router = APIRouter(prefix="/camp-submissions", tags=["camp-submissions"])


@router.get("", response_model=CampSubmissionPage)
def list_submissions(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    limit: int | None = Query(default=None),
    offset: int | None = Query(default=None),
    q: str | None = Query(default=None),
    sort: str | None = Query(default=None),
):
    return camp_service.list_submissions(db, limit=limit, offset=offset, q=q, sort=sort)


@router.post("", response_model=CampSubmissionOut, status_code=status.HTTP_201_CREATED)
def create_submission(
    payload: CampSubmissionIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return camp_service.create_submission(db, actor=user, payload=payload, request_id=request_id)


@router.get("/logs", response_model=CampLogPage)
def list_submission_logs(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    limit: int | None = Query(default=None),
    offset: int | None = Query(default=None),
    action: str | None = Query(default=None),
    q: str | None = Query(default=None),
):
    return camp_service.submission_logs(db, limit=limit, offset=offset, action=action, q=q)


@router.get("/{submission_id}", response_model=CampSubmissionOut)
def get_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return camp_service.get_submission(db, submission_id)


@router.patch("/{submission_id}", response_model=CampSubmissionOut)
def update_submission(
    submission_id: int,
    payload: CampSubmissionIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return camp_service.update_submission(
        db, actor=user, submission_id=submission_id, payload=payload, request_id=request_id
    )


@router.delete("/{submission_id}", response_model=CampSubmissionDeleted)
def delete_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    deleted = camp_service.delete_submission(
        db, actor=user, submission_id=submission_id, request_id=request_id
    )
    return {"ok": True, "deleted": deleted}


@router.get("/{submission_id}/logs", response_model=CampTargetLogPage)
def submission_logs(
    submission_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    limit: int | None = Query(default=None),
    offset: int | None = Query(default=None),
    action: str | None = Query(default=None),
):
    page = camp_service.submission_logs(
        db, limit=limit, offset=offset, action=action, target_id=submission_id
    )
    return {**page, "target_id": str(submission_id)}
