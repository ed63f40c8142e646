"""
Workflow state for one analysis session.

All state is immutable; every user or network event is a plain function
`transition(state, ...) -> SessionState`. The page and the orchestrator
only ever replace the current state with the returned one, so the state
machine can be tested without any rendering runtime.

Lifecycle: idle → validating → in_flight → success | failed.
`reset` returns to the initial state from anywhere.
"""

import logging
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from mdrs.schemas.analysis import MODALITIES, AnalysisResult, Modality

logger = logging.getLogger(__name__)

Status = Literal["idle", "validating", "in_flight", "success", "failed"]

# Statuses from which a submit may start. A failed session keeps its input
# so the user can retry without re-entering data.
SUBMITTABLE_STATUSES = ("idle", "failed")


class FileHandle(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    size: int
    content: bytes = Field(default=b"", repr=False)
    content_type: Optional[str] = None
    upload_id: Optional[str] = None     # picker-assigned identity of this upload

    @property
    def size_text(self) -> str:
        return f"{self.size / 1024:.1f} KB"


class InputState(BaseModel):
    model_config = ConfigDict(frozen=True)

    modality: Modality = MODALITIES[0]
    file: Optional[FileHandle] = None   # non-text modalities only
    text: str = ""                      # text modality only
    source: str = ""
    timestamp: str = ""
    context: str = ""
    drag_active: bool = False           # cosmetic drop-zone highlight


class SessionState(BaseModel):
    model_config = ConfigDict(frozen=True)

    input: InputState = Field(default_factory=InputState)
    status: Status = "idle"
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    request_id: Optional[str] = None    # identifies the call that owns in_flight


def initial_state() -> SessionState:
    return SessionState()


def _with_input(state: SessionState, **changes) -> SessionState:
    return state.model_copy(update={"input": state.input.model_copy(update=changes)})


def _clear_error(state: SessionState) -> SessionState:
    if state.status == "failed":
        return state.model_copy(update={"error": None, "status": "idle"})
    return state.model_copy(update={"error": None})


# ---------------------------------------------------------------------------
# Input capture
# ---------------------------------------------------------------------------


def select_modality(state: SessionState, modality: Modality) -> SessionState:
    """Switch tabs. Clears file, text and any error; metadata is kept."""
    if modality not in MODALITIES:
        raise ValueError(f"Unknown modality: {modality!r}")
    state = _with_input(state, modality=modality, file=None, text="", drag_active=False)
    return _clear_error(state)


def set_file(state: SessionState, handle: FileHandle) -> SessionState:
    """Picker selection. Replaces any previous file and clears any error."""
    if state.input.modality == "text":
        return state
    return _clear_error(_with_input(state, file=handle))


def sync_upload(state: SessionState, handle: FileHandle) -> SessionState:
    """
    Apply the picker's current upload on a page rerun. The file is only
    replaced when the upload identity changed, so an unchanged picker does
    not clear a pending error. Without an id, the handles are compared.
    """
    current = state.input.file
    if current is not None:
        if handle.upload_id is not None and handle.upload_id == current.upload_id:
            return state
        if handle.upload_id is None and handle == current:
            return state
    return set_file(state, handle)


def clear_file(state: SessionState) -> SessionState:
    if state.input.file is None:
        return state
    return _with_input(state, file=None)


def set_text(state: SessionState, text: str) -> SessionState:
    if state.input.modality != "text":
        return state
    return _with_input(state, text=text)


def set_metadata(
    state: SessionState,
    source: Optional[str] = None,
    timestamp: Optional[str] = None,
    context: Optional[str] = None,
) -> SessionState:
    """Update any subset of the optional metadata strings; None leaves a field as is."""
    changes = {}
    if source is not None:
        changes["source"] = source
    if timestamp is not None:
        changes["timestamp"] = timestamp
    if context is not None:
        changes["context"] = context
    if not changes:
        return state
    return _with_input(state, **changes)


def drag_over(state: SessionState) -> SessionState:
    if state.input.drag_active:
        return state
    return _with_input(state, drag_active=True)


def drag_leave(state: SessionState) -> SessionState:
    if not state.input.drag_active:
        return state
    return _with_input(state, drag_active=False)


def drop_files(state: SessionState, handles: List[FileHandle]) -> SessionState:
    """Drop on the upload area. Only the first item is taken; no type check."""
    state = drag_leave(state)
    if not handles:
        return state
    return set_file(state, handles[0])


def dismiss_error(state: SessionState) -> SessionState:
    return _clear_error(state)


# ---------------------------------------------------------------------------
# Request lifecycle
# ---------------------------------------------------------------------------


def begin_validation(state: SessionState) -> SessionState:
    if state.status not in SUBMITTABLE_STATUSES:
        return state
    return state.model_copy(update={"status": "validating", "error": None})


def validation_failed(state: SessionState, message: str) -> SessionState:
    if state.status != "validating":
        return state
    return state.model_copy(update={"status": "failed", "error": message})


def start_request(state: SessionState, request_id: str) -> SessionState:
    if state.status != "validating":
        return state
    return state.model_copy(
        update={"status": "in_flight", "request_id": request_id, "result": None, "error": None}
    )


def _owns_request(state: SessionState, request_id: str) -> bool:
    return state.status == "in_flight" and state.request_id == request_id


def request_succeeded(state: SessionState, request_id: str, result: AnalysisResult) -> SessionState:
    """Apply a completed call. Completions for a superseded call are ignored."""
    if not _owns_request(state, request_id):
        logger.warning(f"[SESSION] Discarding stale result for request {request_id}")
        return state
    return state.model_copy(
        update={"status": "success", "result": result, "error": None, "request_id": None}
    )


def request_failed(state: SessionState, request_id: str, message: str) -> SessionState:
    if not _owns_request(state, request_id):
        logger.warning(f"[SESSION] Discarding stale failure for request {request_id}")
        return state
    return state.model_copy(
        update={"status": "failed", "error": message, "request_id": None}
    )


def reset(state: SessionState) -> SessionState:
    """Unconditional: clears result, file, text, metadata and error."""
    return initial_state()
