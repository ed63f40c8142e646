"""
Deception-risk analysis service integration.

One call per submission: `POST {base_url}/analyze/{modality}` with a
multipart body. The body carries exactly one of `file` (media modalities)
or `text` (text modality), plus whichever of `source`, `timestamp` and
`context` are non-empty. Empty metadata is omitted, never sent blank.

Every failure surfaces as AnalysisRequestError with a user-facing message:
the service's `detail` string when it sends one, otherwise a generic
fallback.
"""

import asyncio
import json
import logging
import mimetypes
from typing import List, Optional, Tuple, Union

import aiohttp
from pydantic import ValidationError

from mdrs.config import settings
from mdrs.core.session_state import FileHandle, InputState
from mdrs.integrations import http_client as http_module
from mdrs.schemas.analysis import AnalysisResult

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Analysis failed. Please try again."

METADATA_FIELDS = ("source", "timestamp", "context")

PayloadField = Tuple[str, Union[str, FileHandle]]


class AnalysisRequestError(Exception):
    """Analysis call failed. `status` is None when no HTTP response arrived."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


def endpoint_url(modality: str, base_url: Optional[str] = None) -> str:
    base = (base_url or settings.api_base_url).rstrip("/")
    return f"{base}/analyze/{modality}"


def payload_fields(input_state: InputState) -> List[PayloadField]:
    """Ordered (name, value) pairs of the multipart body."""
    if input_state.modality == "text":
        fields: List[PayloadField] = [("text", input_state.text)]
    else:
        if input_state.file is None:
            raise ValueError("A file is required for non-text modalities")
        fields = [("file", input_state.file)]

    for name in METADATA_FIELDS:
        value = getattr(input_state, name)
        if value:
            fields.append((name, value))
    return fields


def build_form(input_state: InputState) -> aiohttp.FormData:
    # Forced multipart: a text-only body would otherwise be url-encoded.
    form = aiohttp.FormData(default_to_multipart=True)
    for name, value in payload_fields(input_state):
        if isinstance(value, FileHandle):
            content_type = (
                value.content_type
                or mimetypes.guess_type(value.name)[0]
                or "application/octet-stream"
            )
            form.add_field(name, value.content, filename=value.name, content_type=content_type)
        else:
            form.add_field(name, value)
    return form


def _extract_detail(body: str) -> Optional[str]:
    """Pull a non-empty string `detail` out of an error body, if there is one."""
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, dict):
        detail = data.get("detail")
        if isinstance(detail, str) and detail:
            return detail
    return None


async def analyze(
    input_state: InputState,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> AnalysisResult:
    """
    Submit the input for analysis and return the parsed result document.

    `timeout` overrides settings.analysis_timeout_sec for this call; both
    default to None, which waits for the service indefinitely.
    """
    url = endpoint_url(input_state.modality, base_url)
    form = build_form(input_state)
    field_names = [name for name, _ in payload_fields(input_state)]

    logger.info(f"[ANALYZE] POST {url} | fields={field_names}")

    try:
        async with http_module.request_session(timeout) as session:
            async with session.post(url, data=form) as response:
                status = response.status
                body = await response.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error(f"[ANALYZE] Transport error calling {url}: {e!r}")
        raise AnalysisRequestError(GENERIC_FAILURE_MESSAGE) from e

    if not 200 <= status < 300:
        message = _extract_detail(body) or GENERIC_FAILURE_MESSAGE
        logger.error(f"[ANALYZE] Service returned {status}: {message}")
        raise AnalysisRequestError(message, status=status)

    try:
        result = AnalysisResult.model_validate_json(body)
    except ValidationError as e:
        logger.error(f"[ANALYZE] Malformed result document ({e.error_count()} errors)")
        raise AnalysisRequestError(GENERIC_FAILURE_MESSAGE, status=status) from e

    logger.info(
        f"[ANALYZE] {input_state.modality} analyzed | "
        f"risk={result.risk_score} ({result.risk_level}) | signals={result.signals_detected}"
    )
    return result
