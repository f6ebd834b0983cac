"""Top-level restyle orchestration"""
import asyncio
import time
from typing import List, Optional, Union

from ..config import Settings, settings as default_settings
from ..models.schemas import GeneratedImage, ProcessingMetadata, RestyleMode, RestyleResponse
from ..utils.logger import logger
from .errors import AllProvidersExhausted, GenerationUnavailable, HybridPipelineFailed
from .fallback import MAX_OUTPUTS, FallbackChain, GenerationRequest
from .gemini_service import GeminiService
from .hybrid import HybridPipeline
from .imaging import normalize
from .providers import GenerationProvider, build_providers
from .styles import build_prompt, get_style


class RestyleService:
    """Chooses hybrid or direct mode and assembles the result envelope.

    Providers and the analyzer are built once from settings and hold nothing
    but credentials and API clients, so one instance serves every request.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        providers: Optional[List[GenerationProvider]] = None,
        analyzer: Optional[GeminiService] = None,
    ):
        self.settings = settings or default_settings
        self.providers = build_providers(self.settings) if providers is None else list(providers)

        if analyzer is None and self.settings.gemini_api_key:
            analyzer = GeminiService(self.settings)
        self.analyzer = analyzer

    def is_intelligent_mode_available(self) -> bool:
        """Configuration-only check, no remote calls"""
        return self.analyzer is not None and bool(self.providers)

    async def process(
        self,
        image: bytes,
        style_key: str,
        intensity: float,
        desired_output_count: int,
        mode: Union[RestyleMode, str] = RestyleMode.DIRECT,
    ) -> RestyleResponse:
        """Restyle a room photo.

        Raises UnknownStyle, InvalidImage, ImageTooLarge or
        GenerationUnavailable. Hybrid failures degrade to direct mode.
        """
        mode = RestyleMode(mode)
        get_style(style_key)
        if not 0 <= intensity <= 1:
            raise ValueError("intensity must be between 0 and 1")
        if not 1 <= desired_output_count <= MAX_OUTPUTS:
            raise ValueError(f"desired_output_count must be between 1 and {MAX_OUTPUTS}")

        start_time = time.time()
        logger.info(
            f"Processing restyle: style={style_key} intensity={intensity} "
            f"outputs={desired_output_count} mode={mode.value} size={len(image)}"
        )

        normalized = await asyncio.to_thread(
            normalize,
            image,
            max_side=self.settings.max_image_side,
            max_bytes=self.settings.max_payload_bytes,
            quality=self.settings.jpeg_quality,
            fallback_side=self.settings.fallback_image_side,
            fallback_quality=self.settings.fallback_jpeg_quality,
        )

        if mode == RestyleMode.INTELLIGENT:
            if self.is_intelligent_mode_available():
                pipeline = HybridPipeline(self.analyzer, self.providers[0])
                try:
                    result = await pipeline.run(image, normalized.data, style_key, intensity, desired_output_count)
                    result.metadata.processing_time_ms = int((time.time() - start_time) * 1000)
                    logger.info(f"Intelligent restyle completed with {result.metadata.provider_name}")
                    return result
                except HybridPipelineFailed as e:
                    logger.warning(f"Intelligent mode failed, falling back to direct mode: {e}")
            else:
                logger.info("Intelligent mode requested but not configured, using direct mode")

        return await self._direct(normalized.data, style_key, intensity, desired_output_count, start_time)

    async def _direct(
        self,
        image: bytes,
        style_key: str,
        intensity: float,
        desired_output_count: int,
        start_time: float,
    ) -> RestyleResponse:
        prompt = build_prompt(style_key, intensity)
        chain = FallbackChain(self.providers)

        try:
            result = await chain.run(GenerationRequest(image, prompt, desired_output_count))
        except AllProvidersExhausted as e:
            logger.error(f"Direct restyle failed: {e}")
            raise GenerationUnavailable(str(e)) from e

        processing_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Restyle completed in {processing_time_ms}ms with {result.provider_name} "
            f"({len(result.images)} image(s))"
        )

        return RestyleResponse(
            images=[GeneratedImage(data_url=image) for image in result.images],
            metadata=ProcessingMetadata(
                provider_name=result.provider_name,
                processing_time_ms=processing_time_ms,
                style_applied=style_key,
                intensity=intensity,
                mode_used=RestyleMode.DIRECT,
            ),
        )


# Singleton instance
_restyle_service = None

def get_restyle_service() -> RestyleService:
    """Shared RestyleService instance"""
    global _restyle_service
    if _restyle_service is None:
        _restyle_service = RestyleService()
    return _restyle_service
