from mdrs.schemas.analysis import (
    MODALITIES,
    MODALITY_CONFIG,
    AnalysisResult,
    Modality,
    Recommendation,
    Signal,
)

__all__ = [
    "MODALITIES",
    "MODALITY_CONFIG",
    "AnalysisResult",
    "Modality",
    "Recommendation",
    "Signal",
]
