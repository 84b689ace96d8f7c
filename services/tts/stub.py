"""
Stub TTS backend for testing and offline development.

Deterministic, fast, and never fails silently.
"""

from .base import TTSBackend, TTSRequest, TTSResponse


class StubTTSBackend(TTSBackend):
    """
    Deterministic fake TTS for testing and CI.

    Converts text to deterministic audio bytes.
    """

    def synthesize(self, request: TTSRequest) -> TTSResponse:
        if not request.text:
            return TTSResponse(
                status="recoverable_error",
                error_type="invalid_text",
                metadata={"backend": "stub_tts"},
            )

        # Stub audio: deterministic bytes based on text length
        audio_len = len(request.text) * 10  # 10 bytes per character
        audio_data = bytes([i % 256 for i in range(audio_len)])

        return TTSResponse(
            status="success",
            audio_data=audio_data,
            audio_format="mp3",
            metadata={
                "backend": "stub_tts",
                "language": request.language,
                "text_length": len(request.text),
            },
        )


class NoOpTTSBackend(TTSBackend):
    """TTS that always fails gracefully (for disabled mode)."""

    def synthesize(self, request: TTSRequest) -> TTSResponse:
        return TTSResponse(
            status="fatal_error",
            error_type="backend_unavailable",
            metadata={"backend": "noop_tts", "reason": "TTS disabled"},
        )
