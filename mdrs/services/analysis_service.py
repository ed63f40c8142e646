"""
Request orchestration for one analysis session.

AnalysisSession owns the current SessionState and drives submit:
validate → start request → await the service → apply success or failure.
Only one call can be outstanding: submit is a no-op unless the session is
idle or failed. There is no cancellation; if the session is reset while a
call is running, its completion no longer matches `request_id` and is
dropped by the state transitions.
"""

import logging
import uuid
from typing import Awaitable, Callable, Optional, Tuple

from mdrs.core import session_state as transitions
from mdrs.core.session_state import SessionState, initial_state
from mdrs.core.validation import can_submit, validate
from mdrs.integrations import analysis_api
from mdrs.integrations.analysis_api import AnalysisRequestError
from mdrs.schemas.analysis import AnalysisResult

logger = logging.getLogger(__name__)

AnalyzeFn = Callable[..., Awaitable[AnalysisResult]]

BUSY_LABEL = "Analyzing..."


class AnalysisSession:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        analyze_fn: Optional[AnalyzeFn] = None,
        state: Optional[SessionState] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._analyze = analyze_fn or analysis_api.analyze
        self.state = state or initial_state()

    # ------------------------------------------------------------------ #
    # Input events                                                        #
    # ------------------------------------------------------------------ #

    def dispatch(self, transition: Callable[..., SessionState], *args, **kwargs) -> SessionState:
        """Apply a transition from mdrs.core.session_state to the current state."""
        self.state = transition(self.state, *args, **kwargs)
        return self.state

    def select_modality(self, modality) -> SessionState:
        return self.dispatch(transitions.select_modality, modality)

    def set_file(self, handle) -> SessionState:
        return self.dispatch(transitions.set_file, handle)

    def sync_upload(self, handle) -> SessionState:
        return self.dispatch(transitions.sync_upload, handle)

    def clear_file(self) -> SessionState:
        return self.dispatch(transitions.clear_file)

    def drop_files(self, handles) -> SessionState:
        return self.dispatch(transitions.drop_files, handles)

    def set_text(self, text: str) -> SessionState:
        return self.dispatch(transitions.set_text, text)

    def set_metadata(self, **metadata) -> SessionState:
        return self.dispatch(transitions.set_metadata, **metadata)

    def dismiss_error(self) -> SessionState:
        return self.dispatch(transitions.dismiss_error)

    def reset(self) -> SessionState:
        logger.info("[SESSION] Reset")
        return self.dispatch(transitions.reset)

    # ------------------------------------------------------------------ #
    # Request lifecycle                                                   #
    # ------------------------------------------------------------------ #

    @property
    def in_flight(self) -> bool:
        return self.state.status == "in_flight"

    @property
    def submit_enabled(self) -> bool:
        return not self.in_flight and can_submit(self.state.input)

    def analyze_button(self, label: str, pending: bool = False) -> Tuple[str, bool]:
        """
        Text and disabled flag for the analyze button. `pending` is a click
        the page accepted but has not yet handed to submit().
        """
        if pending or self.in_flight:
            return BUSY_LABEL, True
        return f"🔍 Analyze {label}", not self.submit_enabled

    async def submit(self) -> SessionState:
        """
        Run one submission to completion and return the resulting state.

        Never raises for validation or service failures; those end in the
        `failed` state with a user-facing message.
        """
        if self.state.status not in transitions.SUBMITTABLE_STATUSES:
            logger.info(f"[SESSION] Submit ignored while {self.state.status}")
            return self.state

        self.dispatch(transitions.begin_validation)
        message = validate(self.state.input)
        if message:
            logger.info(f"[SESSION] Validation blocked submit: {message}")
            return self.dispatch(transitions.validation_failed, message)

        request_id = uuid.uuid4().hex
        self.dispatch(transitions.start_request, request_id)
        submitted = self.state.input

        try:
            result = await self._analyze(submitted, base_url=self.base_url, timeout=self.timeout)
        except AnalysisRequestError as e:
            return self.dispatch(transitions.request_failed, request_id, e.message)
        except Exception as e:
            logger.exception(f"[SESSION] Unexpected error during analysis: {e}")
            return self.dispatch(
                transitions.request_failed, request_id, analysis_api.GENERIC_FAILURE_MESSAGE
            )

        return self.dispatch(transitions.request_succeeded, request_id, result)
