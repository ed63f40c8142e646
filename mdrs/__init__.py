"""Client workflow for the media deception-risk analysis service."""

__version__ = "0.1.0"
