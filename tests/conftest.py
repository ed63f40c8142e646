"""
Shared pytest fixtures for all test modules.

Network calls only ever reach the in-process MockAnalysisService.
"""

import copy
import io

import pytest
from PIL import Image

from mdrs.core.session_state import FileHandle, InputState
from mdrs.schemas.analysis import AnalysisResult
from tests.mocks.analysis_service_mock import MockAnalysisService


# ---------------------------------------------------------------------------
# Core infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def analysis_service():
    """Running MockAnalysisService; replies with MOCK_ANALYSIS_RESULT by default."""
    service = MockAnalysisService()
    service.reply_with(copy.deepcopy(MOCK_ANALYSIS_RESULT))
    await service.start()
    yield service
    await service.close()


# ---------------------------------------------------------------------------
# Shared test-data helpers
# ---------------------------------------------------------------------------


def make_tiny_jpeg() -> bytes:
    """Create a minimal 10×10 JPEG in memory, fast and valid."""
    buf = io.BytesIO()
    Image.new("RGB", (10, 10), color=(128, 128, 128)).save(buf, format="JPEG")
    return buf.getvalue()


def make_image_handle(name: str = "photo.jpg", content_type: str | None = "image/jpeg") -> FileHandle:
    content = make_tiny_jpeg()
    return FileHandle(name=name, size=len(content), content=content, content_type=content_type)


@pytest.fixture
def image_handle() -> FileHandle:
    return make_image_handle()


@pytest.fixture
def text_input() -> InputState:
    return InputState(modality="text", text="Breaking: scientists confirm...")


@pytest.fixture
def mock_result() -> AnalysisResult:
    return AnalysisResult.model_validate(copy.deepcopy(MOCK_ANALYSIS_RESULT))


MOCK_ANALYSIS_RESULT = {
    "risk_score": 72,
    "risk_level": "High",
    "modality": "text",
    "signals_detected": 1,
    "signal_breakdown": [
        {
            "signal": "emotional_language",
            "description": "Emotionally charged wording designed to provoke a reaction.",
            "confidence": 0.81,
            "weight": 0.3,
            "contribution": 24.3,
            "evidence": {"matched_terms": ["breaking", "shocking"]},
        }
    ],
    "explanation": "The content relies on urgency and emotional framing.",
    "recommendation": {
        "action": "Verify with independent sources before sharing",
        "priority": "High",
        "suggested_steps": [
            "Search for the original study",
            "Check reputable news outlets",
        ],
        "human_review_required": True,
    },
    "gemini_analysis": "The text shows **strong urgency cues** and no citation.",
    "gemini_verified": True,
    "disclaimer": "This is a risk assessment, not a determination of truth.",
    "timestamp": None,
    "source": None,
}
