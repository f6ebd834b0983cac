"""Analyze-then-generate pipeline"""
import time

from ..models.schemas import GeneratedImage, ProcessingMetadata, RestyleMode, RestyleResponse
from ..utils.logger import logger
from .errors import HybridPipelineFailed
from .fallback import FallbackChain, GenerationRequest
from .gemini_service import GeminiService
from .providers import GenerationProvider


class HybridPipeline:
    """Room analysis -> prompt synthesis -> generation with the primary provider.

    Any failure surfaces as HybridPipelineFailed; deciding whether to degrade
    is left to the caller.
    """

    def __init__(self, analyzer: GeminiService, primary: GenerationProvider):
        self.analyzer = analyzer
        self.primary = primary

    async def run(
        self,
        original: bytes,
        normalized: bytes,
        style_key: str,
        intensity: float,
        desired_output_count: int,
    ) -> RestyleResponse:
        start_time = time.time()

        try:
            logger.info("Hybrid step 1/3: analyzing room")
            analysis = await self.analyzer.analyze_room(original)

            logger.info("Hybrid step 2/3: synthesizing style prompt")
            prompt = await self.analyzer.generate_style_prompt(analysis, style_key, intensity)

            logger.info(f"Hybrid step 3/3: generating with {self.primary.name}")
            chain = FallbackChain([self.primary])
            result = await chain.run(GenerationRequest(normalized, prompt, desired_output_count))

        except Exception as e:
            raise HybridPipelineFailed(f"Hybrid pipeline failed: {type(e).__name__}: {e}") from e

        return RestyleResponse(
            images=[GeneratedImage(data_url=image) for image in result.images],
            analysis=analysis,
            intelligent_prompt=prompt,
            metadata=ProcessingMetadata(
                provider_name=f"Hybrid (Gemini vision + {result.provider_name})",
                processing_time_ms=int((time.time() - start_time) * 1000),
                style_applied=style_key,
                intensity=intensity,
                mode_used=RestyleMode.INTELLIGENT,
            ),
        )
