# medintake/api/routes.py
from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, status

from medintake.intake.engine import DialogueEngine
from medintake.intake.schema import IntakeSnapshot
from medintake.services import IntakeSessionService
from .schemas import CommitRequest, OperationResponse, PendingTextRequest

router = APIRouter(prefix="/intake/sessions", tags=["intake"])


@lru_cache(maxsize=1)
def get_intake_service() -> IntakeSessionService:
    return IntakeSessionService()


def _get_engine(
    session_id: str,
    service: IntakeSessionService = Depends(get_intake_service),
) -> DialogueEngine:
    engine = service.get_session(session_id)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Intake session not found. Start a new intake session.",
        )
    return engine


def _result(engine: DialogueEngine, accepted: bool) -> OperationResponse:
    return OperationResponse(accepted=accepted, session=engine.snapshot())


@router.post("", response_model=IntakeSnapshot, status_code=status.HTTP_201_CREATED)
async def start_intake(
    service: IntakeSessionService = Depends(get_intake_service),
) -> IntakeSnapshot:
    """
    Start a new intake session. The transcript starts with the opening message.
    """
    return service.start_session().snapshot()


@router.get("/{session_id}", response_model=IntakeSnapshot)
async def get_intake(engine: DialogueEngine = Depends(_get_engine)) -> IntakeSnapshot:
    return engine.snapshot()


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def end_intake(
    session_id: str,
    service: IntakeSessionService = Depends(get_intake_service),
) -> None:
    if not service.end_session(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Intake session not found.",
        )


@router.post(
    "/{session_id}/commit",
    response_model=OperationResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def commit_answer(
    payload: CommitRequest,
    wait: bool = False,
    engine: DialogueEngine = Depends(_get_engine),
) -> OperationResponse:
    """
    Commit the subject's answer. Returns as soon as the answer is logged;
    poll the session (or pass ?wait=true) to see the assistant's reply.
    """
    task = engine.commit(payload.text)
    if task is not None and wait:
        await task
    return _result(engine, task is not None)


@router.post("/{session_id}/capture", response_model=OperationResponse)
async def start_capture(
    wait: bool = False,
    engine: DialogueEngine = Depends(_get_engine),
) -> OperationResponse:
    task = engine.start_capture()
    if task is not None and wait:
        await engine.wait_idle()
    return _result(engine, task is not None)


@router.delete("/{session_id}/capture", response_model=OperationResponse)
async def cancel_capture(engine: DialogueEngine = Depends(_get_engine)) -> OperationResponse:
    return _result(engine, engine.cancel_capture())


@router.put("/{session_id}/pending", response_model=OperationResponse)
async def update_pending(
    payload: PendingTextRequest,
    engine: DialogueEngine = Depends(_get_engine),
) -> OperationResponse:
    return _result(engine, engine.update_text(payload.text))


@router.post("/{session_id}/pending/edit", response_model=OperationResponse)
async def begin_edit(engine: DialogueEngine = Depends(_get_engine)) -> OperationResponse:
    return _result(engine, engine.begin_edit())


@router.post("/{session_id}/pending/confirm", response_model=OperationResponse)
async def end_edit(engine: DialogueEngine = Depends(_get_engine)) -> OperationResponse:
    return _result(engine, engine.end_edit())


@router.delete("/{session_id}/pending", response_model=OperationResponse)
async def clear_pending(engine: DialogueEngine = Depends(_get_engine)) -> OperationResponse:
    return _result(engine, engine.clear_pending())
