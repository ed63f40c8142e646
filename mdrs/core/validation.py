"""
Pre-flight submit gate.

Only presence of input is checked here. File type and size are left to the
analysis service; the picker's accept filter is advisory.
"""

from typing import Optional

from mdrs.core.session_state import InputState

MISSING_TEXT_MESSAGE = "Please enter text content to analyze."
MISSING_FILE_MESSAGE = "Please select a file to analyze."


def validate(input_state: InputState) -> Optional[str]:
    """Return the blocking error message, or None when the input may be submitted."""
    if input_state.modality == "text":
        if not input_state.text.strip():
            return MISSING_TEXT_MESSAGE
        return None
    if input_state.file is None:
        return MISSING_FILE_MESSAGE
    return None


def can_submit(input_state: InputState) -> bool:
    return validate(input_state) is None
