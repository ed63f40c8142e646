from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional, Union, get_args

Modality = Literal["image", "video", "audio", "text"]

# Tab order on the page; the first entry is the default selection.
MODALITIES: tuple = get_args(Modality)

# Presentation table. `accept` is an advisory picker filter only.
MODALITY_CONFIG: Dict[str, Dict[str, str]] = {
    "image": {"icon": "🖼️", "label": "Image", "accept": "image/*"},
    "video": {"icon": "🎬", "label": "Video", "accept": "video/*"},
    "audio": {"icon": "🎧", "label": "Audio", "accept": "audio/*"},
    "text": {"icon": "📝", "label": "Text", "accept": ""},
}


class Signal(BaseModel):
    signal: str             # identifier, e.g. "emotional_language"
    description: str = ""
    confidence: float       # nominally 0.0–1.0; server is the authority
    weight: float = 0.0
    contribution: float = 0.0
    evidence: Optional[Dict[str, Any]] = Field(default_factory=dict)


class Recommendation(BaseModel):
    action: str
    priority: str           # opaque label, e.g. "Low" / "Medium" / "High"
    suggested_steps: List[str] = Field(default_factory=list)
    human_review_required: bool = False


class AnalysisResult(BaseModel):
    """Response document of POST /analyze/{modality}."""
    risk_score: Union[int, float] = Field(description="Aggregate deception risk, shown verbatim")
    risk_level: str
    modality: str
    signals_detected: int = 0
    signal_breakdown: Optional[List[Signal]] = None
    explanation: str = ""
    recommendation: Recommendation
    gemini_analysis: Optional[str] = None
    gemini_verified: Optional[bool] = None
    disclaimer: Optional[str] = None
    timestamp: Optional[str] = None
    source: Optional[str] = None
