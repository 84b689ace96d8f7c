"""
Text-to-Speech (TTS) abstract interface.

Role: Text → audio rendering only.

Rules:
- Output-only (no state mutation)
- All failures are explicit and typed; synthesize() never raises
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any, Literal


TTSStatus = Literal["success", "recoverable_error", "fatal_error"]


@dataclass
class TTSRequest:
    """Text-to-Speech request."""

    text: str
    language: str = "pt"
    slow: bool = False


@dataclass
class TTSResponse:
    """Text-to-Speech response."""

    status: TTSStatus
    audio_data: Optional[bytes] = None  # Raw audio bytes
    audio_format: str = "mp3"  # mp3, wav, ogg
    error_type: Optional[str] = None  # invalid_text | backend_unavailable | write_failed
    metadata: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


class TTSBackend(ABC):
    """
    Abstract TTS boundary.
    Relay code must depend ONLY on this interface.
    """

    @abstractmethod
    def synthesize(self, request: TTSRequest) -> TTSResponse:
        """
        Synthesize text to audio.

        Args:
            request: TTSRequest with text and optional parameters

        Returns:
            TTSResponse with audio data or explicit error status
        """
        raise NotImplementedError

    def synthesize_to_file(self, request: TTSRequest, path: str) -> TTSResponse:
        """
        Synthesize and write the audio to path.

        Nothing is written unless synthesis succeeds.
        """
        response = self.synthesize(request)
        if not response.ok:
            return response
        try:
            with open(path, "wb") as f:
                f.write(response.audio_data)
        except OSError as e:
            return TTSResponse(
                status="fatal_error",
                error_type="write_failed",
                metadata={"error": str(e), "path": path},
            )
        return response
