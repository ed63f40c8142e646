"""
Projection of an AnalysisResult into display-ready report content.

Pure and deterministic: no network, no mutation. Labels that style the
report (risk level, priority) are only lower-cased or matched, never
re-derived from the numbers.
"""

import json
import math
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel

from mdrs.core.formatter import Segment, format_markup
from mdrs.schemas.analysis import AnalysisResult, Recommendation, Signal

Severity = Literal["low", "medium", "high"]

SEVERITY_ICONS: Dict[str, str] = {"low": "✓", "medium": "⚠", "high": "⚠️"}

VERIFIED_BADGE = "Gemini Verified"
REVIEW_NOTICE = "Human Review Required"


class RiskBadge(BaseModel):
    label: str          # "High Risk"
    icon: str
    severity: Severity


class SignalRow(BaseModel):
    title: str
    confidence_pct: Union[int, float]
    confidence_text: str
    description: str
    evidence_text: Optional[str] = None


class RecommendationView(BaseModel):
    action: str
    priority: str
    priority_label: str     # "High Priority"
    priority_class: str     # lower-cased label, styling only
    steps: List[str]
    review_required: bool


class ReportView(BaseModel):
    score: Union[int, float]
    score_text: str
    badge: RiskBadge
    signal_count: int
    signal_count_text: str
    explanation: str
    ai_segments: Optional[List[Segment]] = None
    ai_verified: bool = False
    signals: List[SignalRow]
    recommendation: RecommendationView
    disclaimer: Optional[str] = None


def severity_for(risk_level: str) -> Severity:
    level = risk_level.lower()
    if level == "low":
        return "low"
    if level == "medium":
        return "medium"
    return "high"


def confidence_percent(confidence: float) -> Union[int, float]:
    """
    Nearest whole percent, halves rounded up. Out-of-range values pass
    through unclamped; non-finite values are returned as-is.
    """
    scaled = confidence * 100
    if not math.isfinite(scaled):
        return scaled
    return int(math.floor(scaled + 0.5))


def signal_title(identifier: str) -> str:
    return identifier.replace("_", " ")


def serialize_evidence(evidence: Optional[Dict[str, Any]], max_chars: Optional[int] = None) -> Optional[str]:
    """Compact JSON of the evidence mapping, or None when it is empty."""
    if not evidence:
        return None
    text = json.dumps(evidence, separators=(",", ":"), ensure_ascii=False, default=str)
    if max_chars is not None and len(text) > max_chars:
        text = text[:max_chars] + "…"
    return text


def count_signals(result: AnalysisResult) -> int:
    """Trust the list when present; `signals_detected` is the fallback."""
    if result.signal_breakdown is not None:
        return len(result.signal_breakdown)
    return result.signals_detected


def build_signal_row(signal: Signal, max_evidence_chars: Optional[int] = None) -> SignalRow:
    pct = confidence_percent(signal.confidence)
    return SignalRow(
        title=signal_title(signal.signal),
        confidence_pct=pct,
        confidence_text=f"{pct}% Confidence",
        description=signal.description,
        evidence_text=serialize_evidence(signal.evidence, max_evidence_chars),
    )


def build_recommendation(rec: Recommendation) -> RecommendationView:
    return RecommendationView(
        action=rec.action,
        priority=rec.priority,
        priority_label=f"{rec.priority} Priority",
        priority_class=rec.priority.lower(),
        steps=list(rec.suggested_steps),
        review_required=rec.human_review_required is True,
    )


def build_report(result: AnalysisResult, max_evidence_chars: Optional[int] = None) -> ReportView:
    severity = severity_for(result.risk_level)
    count = count_signals(result)

    ai_segments = None
    if result.gemini_analysis:
        ai_segments = format_markup(result.gemini_analysis)

    return ReportView(
        score=result.risk_score,
        score_text=str(result.risk_score),
        badge=RiskBadge(
            label=f"{result.risk_level} Risk",
            icon=SEVERITY_ICONS[severity],
            severity=severity,
        ),
        signal_count=count,
        signal_count_text=f"Based on {count} detected signal{'' if count == 1 else 's'}",
        explanation=result.explanation,
        ai_segments=ai_segments,
        ai_verified=result.gemini_verified is True,
        signals=[
            build_signal_row(s, max_evidence_chars) for s in (result.signal_breakdown or [])
        ],
        recommendation=build_recommendation(result.recommendation),
        disclaimer=result.disclaimer,
    )
