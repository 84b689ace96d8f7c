"""
Google Translate TTS backend (gTTS).

Install: pip install gTTS
Output:  MP3. Needs network access to translate.google.com.
"""

import io
import logging

from gtts import gTTS
from gtts.tts import gTTSError

from .base import TTSBackend, TTSRequest, TTSResponse

logger = logging.getLogger(__name__)


class GTTSBackend(TTSBackend):
    """gTTS backend with a fixed default language."""

    def __init__(self, language: str = "pt"):
        self.language = language

    def _build(self, request: TTSRequest) -> gTTS:
        return gTTS(text=request.text, lang=request.language or self.language, slow=request.slow)

    def _error(self, error_type: str, error: Exception, request: TTSRequest) -> TTSResponse:
        logger.error(f"gTTS synthesis failed: {error}", exc_info=True)
        return TTSResponse(
            status="fatal_error" if error_type == "backend_unavailable" else "recoverable_error",
            error_type=error_type,
            metadata={"backend": "gtts", "error": str(error), "language": request.language},
        )

    def synthesize(self, request: TTSRequest) -> TTSResponse:
        if not request.text:
            return TTSResponse(
                status="recoverable_error",
                error_type="invalid_text",
                metadata={"backend": "gtts"},
            )

        buffer = io.BytesIO()
        try:
            self._build(request).write_to_fp(buffer)
        except AssertionError as e:
            # gTTS asserts on text with nothing speakable
            return self._error("invalid_text", e, request)
        except (gTTSError, ValueError, RuntimeError) as e:
            return self._error("backend_unavailable", e, request)

        return TTSResponse(
            status="success",
            audio_data=buffer.getvalue(),
            audio_format="mp3",
            metadata={
                "backend": "gtts",
                "language": request.language or self.language,
                "text_length": len(request.text),
            },
        )

    def synthesize_to_file(self, request: TTSRequest, path: str) -> TTSResponse:
        """Let gTTS stream straight to disk instead of buffering."""
        if not request.text:
            return self.synthesize(request)
        try:
            self._build(request).save(path)
        except AssertionError as e:
            return self._error("invalid_text", e, request)
        except (gTTSError, ValueError, RuntimeError, OSError) as e:
            return self._error("backend_unavailable", e, request)

        return TTSResponse(
            status="success",
            audio_format="mp3",
            metadata={"backend": "gtts", "language": request.language or self.language, "path": path},
        )
