"""Call endpoints."""

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status

from callqual.api.deps import ControllerDep
from callqual.auth.middleware import OwnerDep
from callqual.models import CallStatus
from callqual.pipeline.errors import (
    AdmissionRejectedError,
    CallNotFoundError,
    InvalidTransitionError,
)
from callqual.schemas.call import (
    BatchProcessRequest,
    CallDetail,
    CallListItem,
    CallListResponse,
    CallOut,
    CallStats,
    Pagination,
    SubmitCallRequest,
)

router = APIRouter()


@router.post("/calls", response_model=CallOut, status_code=status.HTTP_202_ACCEPTED)
async def submit_call(body: SubmitCallRequest, owner_id: OwnerDep, controller: ControllerDep):
    """
    Register a recording and start processing in the background.
    Returns immediately with the call in PENDING.
    """
    try:
        call = await controller.submit_call(
            owner_id,
            body.recording_locator,
            file_name=body.file_name,
            metadata=body.build_metadata(),
        )
    except AdmissionRejectedError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return call


@router.get("/calls", response_model=CallListResponse)
async def list_calls(
    owner_id: OwnerDep,
    controller: ControllerDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: CallStatus | None = Query(None, alias="status"),
    search: str | None = None,
):
    """List calls, newest first."""
    calls, total = await controller.list_calls(owner_id, page, limit, status_filter, search)
    return CallListResponse(
        data=[CallListItem.model_validate(c) for c in calls],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=(total + limit - 1) // limit,
        ),
    )


@router.get("/calls/stats", response_model=CallStats)
async def get_stats(owner_id: OwnerDep, controller: ControllerDep):
    """Call counts per status."""
    return await controller.get_stats(owner_id)


@router.post("/calls/batch", status_code=status.HTTP_202_ACCEPTED)
async def process_batch(
    body: BatchProcessRequest,
    owner_id: OwnerDep,
    controller: ControllerDep,
    background_tasks: BackgroundTasks,
):
    """Process PENDING calls one at a time in the background."""
    for call_id in body.call_ids:
        try:
            call = await controller.get_call(owner_id, call_id)
        except CallNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Call not found: {call_id}")
        if call.status != CallStatus.PENDING.value:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Call {call_id} is {call.status}, only PENDING calls can be processed",
            )
    background_tasks.add_task(controller.process_batch, body.call_ids)
    return {"scheduled": len(body.call_ids)}


@router.get("/calls/{call_id}", response_model=CallDetail)
async def get_call(call_id: str, owner_id: OwnerDep, controller: ControllerDep):
    """Call with transcript and qualification (owner-scoped)."""
    try:
        return await controller.get_call(owner_id, call_id)
    except CallNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Call not found")


@router.delete("/calls/{call_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_call(call_id: str, owner_id: OwnerDep, controller: ControllerDep):
    """Delete a call with its transcript and qualification."""
    try:
        await controller.delete_call(owner_id, call_id)
    except CallNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Call not found")


@router.post("/calls/{call_id}/submit", response_model=CallOut, status_code=status.HTTP_202_ACCEPTED)
async def resubmit_call(call_id: str, owner_id: OwnerDep, controller: ControllerDep):
    """Schedule an existing PENDING call. Completed or failed calls are rejected."""
    try:
        call = await controller.get_call(owner_id, call_id)
        await controller.submit(call.id)
    except CallNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Call not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except AdmissionRejectedError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return call
