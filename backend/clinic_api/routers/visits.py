from fastapi import APIRouter, Depends, Header, Query, Response, status
from sqlalchemy.orm import Session

from clinic_api.db.session import get_db
from clinic_api.deps import get_current_user
from clinic_api.models.user import User
from clinic_api.schemas.visit import NextApptOut, NextApptRow, ProcedureIn, VisitIn, VisitOut
from clinic_api.services import procedures as procedure_service
from clinic_api.services import visits as visit_service

router = APIRouter(prefix="/visits", tags=["visits"])


@router.get("/appointments/next", response_model=list[NextApptRow])
def upcoming_appointments(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    return visit_service.upcoming_appointments(db, limit=limit, offset=offset)


@router.post("/{patient_id}/visits", response_model=VisitOut, status_code=status.HTTP_201_CREATED)
def create_visit(
    patient_id: int,
    payload: VisitIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return visit_service.create_visit(
        db, actor=user, patient_id=patient_id, payload=payload, request_id=request_id
    )


@router.get("/{patient_id}/visits", response_model=list[VisitOut])
def list_visits(
    patient_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    return visit_service.list_visits(db, patient_id, limit=limit, offset=offset)


@router.get("/{visit_id}", response_model=VisitOut)
def get_visit(
    visit_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return procedure_service.load_visit(db, visit_id)


@router.patch("/{visit_id}", response_model=VisitOut)
def update_visit(
    visit_id: int,
    payload: VisitIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    if_match: str | None = Header(default=None, alias="If-Match"),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return visit_service.update_visit(
        db,
        actor=user,
        visit_id=visit_id,
        payload=payload,
        if_match=if_match,
        request_id=request_id,
    )


@router.delete("/{visit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_visit(
    visit_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    visit_service.delete_visit(db, actor=user, visit_id=visit_id, request_id=request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{visit_id}/next-appt", response_model=NextApptOut)
def next_appointment(
    visit_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return visit_service.next_appointment(db, visit_id)


@router.get("/{visit_id}/next-appts", response_model=list[NextApptRow])
def next_appointments(
    visit_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return visit_service.next_appointments(db, visit_id)


@router.post("/{visit_id}/procedures", response_model=VisitOut)
def add_procedure(
    visit_id: int,
    payload: ProcedureIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    if_match: str | None = Header(default=None, alias="If-Match"),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return procedure_service.add_procedure(
        db,
        actor=user,
        visit_id=visit_id,
        data=payload.model_dump(exclude_unset=True),
        if_match=if_match,
        request_id=request_id,
    )


@router.patch("/{visit_id}/procedures/by-id/{procedure_id}", response_model=VisitOut)
def update_procedure_by_id(
    visit_id: int,
    procedure_id: str,
    payload: ProcedureIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    if_match: str | None = Header(default=None, alias="If-Match"),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return procedure_service.update_procedure_by_id(
        db,
        actor=user,
        visit_id=visit_id,
        procedure_id=procedure_id,
        data=payload.model_dump(exclude_unset=True),
        if_match=if_match,
        request_id=request_id,
    )


@router.delete("/{visit_id}/procedures/by-id/{procedure_id}", response_model=VisitOut)
def delete_procedure_by_id(
    visit_id: int,
    procedure_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    if_match: str | None = Header(default=None, alias="If-Match"),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return procedure_service.delete_procedure_by_id(
        db,
        actor=user,
        visit_id=visit_id,
        procedure_id=procedure_id,
        if_match=if_match,
        request_id=request_id,
    )


@router.patch("/{visit_id}/procedures/{index}", response_model=VisitOut)
def update_procedure(
    visit_id: int,
    index: str,
    payload: ProcedureIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    if_match: str | None = Header(default=None, alias="If-Match"),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return procedure_service.update_procedure_at(
        db,
        actor=user,
        visit_id=visit_id,
        index=index,
        data=payload.model_dump(exclude_unset=True),
        if_match=if_match,
        request_id=request_id,
    )


@router.delete("/{visit_id}/procedures/{index}", response_model=VisitOut)
def delete_procedure(
    visit_id: int,
    index: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    if_match: str | None = Header(default=None, alias="If-Match"),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return procedure_service.delete_procedure_at(
        db,
        actor=user,
        visit_id=visit_id,
        index=index,
        if_match=if_match,
        request_id=request_id,
    )
