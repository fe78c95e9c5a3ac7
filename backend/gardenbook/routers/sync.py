from fastapi import APIRouter, Depends, HTTPException

from gardenbook.schemas.sync import SignInRequest, SyncStatusResponse
from gardenbook.services.auth_service import LocalSessionProvider, get_session_provider
from gardenbook.services.sync_service import SyncReconciler, get_sync_reconciler

router = APIRouter(prefix="/api/sync", tags=["sync"])


def _status(reconciler: SyncReconciler) -> SyncStatusResponse:
    return SyncStatusResponse(
        status=reconciler.status,
        enabled=reconciler.enabled,
        user_id=reconciler.current_user_id(),
        pending=reconciler.pending_keys,
    )


@router.get("/status", response_model=SyncStatusResponse)
def sync_status(reconciler: SyncReconciler = Depends(get_sync_reconciler)):
    return _status(reconciler)


@router.post("/sign-in", response_model=SyncStatusResponse)
async def sign_in(
    request: SignInRequest,
    reconciler: SyncReconciler = Depends(get_sync_reconciler),
    sessions: LocalSessionProvider = Depends(get_session_provider),
):
    """Start a session; the first sign-in pulls and merges remote data"""
    if not reconciler.enabled:
        raise HTTPException(status_code=400, detail="Cloud sync is not configured")
    sessions.sign_in(request.user_id, request.email)
    return _status(reconciler)


@router.post("/sign-out", response_model=SyncStatusResponse)
async def sign_out(reconciler: SyncReconciler = Depends(get_sync_reconciler)):
    """Flush pending changes, then end the session"""
    await reconciler.sign_out()
    return _status(reconciler)


@router.post("/flush", response_model=SyncStatusResponse)
async def flush(reconciler: SyncReconciler = Depends(get_sync_reconciler)):
    await reconciler.flush()
    return _status(reconciler)


@router.post("/online", response_model=SyncStatusResponse)
def online(reconciler: SyncReconciler = Depends(get_sync_reconciler)):
    """Connectivity restored: flush without waiting for the debounce"""
    reconciler.notify_online()
    return _status(reconciler)
