"""
Text-to-Speech service exports.

Clean interface for the relay to import TTS components.
"""

from .base import TTSBackend, TTSRequest, TTSResponse, TTSStatus
from .stub import StubTTSBackend, NoOpTTSBackend
from .gtts_backend import GTTSBackend

__all__ = [
    "TTSBackend",
    "TTSRequest",
    "TTSResponse",
    "TTSStatus",
    "StubTTSBackend",
    "NoOpTTSBackend",
    "GTTSBackend",
]
