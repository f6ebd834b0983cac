"""Image generation providers.

Every provider shares the same candidate loop (``GenerationProvider.generate``)
and only implements the two remote steps: requesting one candidate and
reading the produced image back. Providers are listed in ``PROVIDER_REGISTRY``
and built from settings by ``build_providers``; adding a provider means
adding a class to that list.
"""
import asyncio
import base64
import random
import re
import time
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Any, List, Optional, Type

import replicate
import requests
from google import genai
from PIL import Image

from ..config import Settings, settings as default_settings
from ..utils.logger import logger
from ..utils.timeouts import call_with_timeout
from .errors import (
    InvalidImage,
    MalformedProviderOutput,
    NoOutputProduced,
    ProviderConfigurationError,
    ProviderError,
    ProviderRateLimited,
    ProviderResourceExhausted,
    ProviderTimeout,
)
from .imaging import optimize_for_generation, to_data_url

NEGATIVE_PROMPT = (
    "blurry, low quality, distorted, ugly, cartoon, anime, painting, sketch, "
    "people, text, watermark, border, frame"
)

RATE_LIMIT_STATUS = 429
RATE_LIMIT_PATTERN = re.compile(r"\b429\b")


def _status_code(error: Exception) -> Optional[int]:
    """HTTP status carried by an SDK or requests exception, if any"""
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def classify_provider_error(provider: str, error: Exception) -> ProviderError:
    """Map a raw remote failure onto a provider error kind"""
    if isinstance(error, ProviderError):
        return error

    message = str(error)
    lowered = message.lower()
    rate_limited = _status_code(error) == RATE_LIMIT_STATUS or bool(RATE_LIMIT_PATTERN.search(message))

    if isinstance(error, TimeoutError) or "timed out" in lowered or "timeout" in lowered:
        return ProviderTimeout(provider, message)
    if rate_limited or "rate limit" in lowered or "rate_limit" in lowered or "quota" in lowered:
        return ProviderRateLimited(provider, message)
    if "out of memory" in lowered or "resource_exhausted" in lowered or "resource exhausted" in lowered:
        return ProviderResourceExhausted(provider, message)
    if isinstance(error, InvalidImage):
        return MalformedProviderOutput(provider, message)
    return ProviderError(provider, f"{type(error).__name__}: {message}")


class GenerationProvider(ABC):
    """One remote image-to-image model"""

    key: str = ""
    name: str = ""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    @property
    @abstractmethod
    def timeout_seconds(self) -> float:
        ...

    @abstractmethod
    def _request_candidate(self, image: bytes, prompt: str, index: int) -> Any:
        """Blocking remote call producing one candidate's raw output"""

    @abstractmethod
    def _read_output(self, output: Any) -> bytes:
        """Blocking step turning raw output into image bytes"""

    async def generate(self, image: bytes, prompt: str, count: int) -> List[str]:
        """Produce up to `count` data URLs, capped by settings.

        Candidates run one after another. A failed candidate is logged and
        skipped, so the result may be shorter than requested, but it is never
        empty: zero successes raises NoOutputProduced.
        """
        capped = max(1, min(count, self.settings.max_candidates_per_provider))
        # Pillow work runs in a thread so it does not block other requests
        optimized = await asyncio.to_thread(
            optimize_for_generation,
            image,
            max_side=self.settings.optimize_max_side,
            max_bytes=self.settings.optimize_max_bytes,
            quality=self.settings.jpeg_quality,
            recompress_quality=self.settings.optimize_jpeg_quality,
        )

        logger.info(f"{self.name}: generating {capped} candidate(s) (requested {count})")
        start_time = time.time()
        results: List[str] = []
        failures: List[ProviderError] = []

        for index in range(capped):
            try:
                output = await call_with_timeout(
                    self._request_candidate, optimized, prompt, index,
                    timeout=self.timeout_seconds,
                    label=f"{self.name} candidate {index + 1}",
                )
                data = await call_with_timeout(
                    self._read_output, output,
                    timeout=self.settings.output_fetch_timeout_seconds,
                    label=f"{self.name} output fetch {index + 1}",
                )
                results.append(await asyncio.to_thread(to_data_url, data))
                logger.info(f"{self.name}: candidate {index + 1}/{capped} completed")
            except Exception as e:
                failure = classify_provider_error(self.name, e)
                failures.append(failure)
                logger.warning(f"{self.name}: candidate {index + 1}/{capped} failed ({failure.kind}): {e}")

        if not results:
            raise NoOutputProduced(self.name, failures)

        duration = time.time() - start_time
        logger.info(f"{self.name}: {len(results)}/{capped} candidate(s) in {duration:.2f}s")
        return results


class ReplicateProvider(GenerationProvider):
    """Base for models hosted on Replicate"""

    model: str = ""

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        if not self.settings.replicate_api_token:
            raise ProviderConfigurationError(f"{self.name} requires REPLICATE_API_TOKEN")
        self.client = replicate.Client(api_token=self.settings.replicate_api_token)

    @abstractmethod
    def build_input(self, image_url: str, prompt: str, index: int) -> dict:
        ...

    def _request_candidate(self, image: bytes, prompt: str, index: int) -> Any:
        image_url = f"data:image/jpeg;base64,{base64.b64encode(image).decode('ascii')}"
        return self.client.run(self.model, input=self.build_input(image_url, prompt, index))

    def _read_output(self, output: Any) -> bytes:
        # Replicate returns a URL, a list of URLs or file objects depending on model and client version
        if isinstance(output, (list, tuple)):
            if not output:
                raise MalformedProviderOutput(self.name, "empty output list")
            output = output[0]

        if isinstance(output, str):
            response = requests.get(output, timeout=self.settings.output_fetch_timeout_seconds)
            response.raise_for_status()
            return response.content
        if hasattr(output, "read"):
            return output.read()

        raise MalformedProviderOutput(self.name, f"unexpected output type {type(output).__name__}")


class SDXLProvider(ReplicateProvider):
    """Primary provider: SDXL img2img"""

    key = "sdxl"
    name = "Replicate SDXL img2img"

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        self.model = self.settings.sdxl_model

    @property
    def timeout_seconds(self) -> float:
        return self.settings.sdxl_timeout_seconds

    def build_input(self, image_url: str, prompt: str, index: int) -> dict:
        return {
            "image": image_url,
            "prompt": (
                f"Interior design transformation: {prompt}. Professional interior photography, "
                "high quality, realistic lighting, maintain room structure and layout"
            ),
            "negative_prompt": NEGATIVE_PROMPT,
            # Later candidates drift further from the source photo
            "strength": round(0.5 + index * 0.1, 2),
            "guidance_scale": 7.5,
            "num_inference_steps": 25,
            "seed": random.randint(0, 99999),
        }


class InstructPix2PixProvider(ReplicateProvider):
    """Fallback provider: instruction-tuned SD 1.5"""

    key = "sd15"
    name = "Replicate SD 1.5 img2img"

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        self.model = self.settings.sd15_model

    @property
    def timeout_seconds(self) -> float:
        return self.settings.sd15_timeout_seconds

    def build_input(self, image_url: str, prompt: str, index: int) -> dict:
        return {
            "image": image_url,
            "prompt": (
                f"Transform this interior to: {prompt}. Keep the room layout and structure, "
                "only change style, colors, furniture and decor"
            ),
            "num_inference_steps": 20,
            "guidance_scale": 7.5,
            "image_guidance_scale": 1.5,
            "seed": random.randint(0, 99999),
        }


class GeminiImageProvider(GenerationProvider):
    """Gemini image model, last resort in the default chain"""

    key = "gemini_image"
    name = "Gemini image"

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        if not self.settings.gemini_api_key:
            raise ProviderConfigurationError(f"{self.name} requires GEMINI_API_KEY")
        self.client = genai.Client(api_key=self.settings.gemini_api_key)

    @property
    def timeout_seconds(self) -> float:
        return self.settings.gemini_image_timeout_seconds

    def _request_candidate(self, image: bytes, prompt: str, index: int) -> Any:
        instruction = f"""IMPORTANT: You MUST generate an image. Do not provide text-only response.

Transform this room: {prompt}.

- NEVER modify walls, windows, doors, ceiling height or room dimensions
- Keep the SAME camera angle, framing and viewpoint as the original photo
- Change furniture, colors, textiles, lighting and decor to match the style
- Keep the result photorealistic and livable
"""
        return self.client.models.generate_content(
            model=self.settings.gemini_image_model,
            contents=[instruction, Image.open(BytesIO(image))],
        )

    def _read_output(self, output: Any) -> bytes:
        candidates = getattr(output, "candidates", None)
        parts = candidates[0].content.parts if candidates else getattr(output, "parts", None)

        for part in parts or []:
            inline_data = getattr(part, "inline_data", None)
            if inline_data and inline_data.data:
                return inline_data.data

        raise MalformedProviderOutput(self.name, "response contained no image data")


PROVIDER_REGISTRY: List[Type[GenerationProvider]] = [
    SDXLProvider,
    InstructPix2PixProvider,
    GeminiImageProvider,
]


def build_providers(
    settings: Optional[Settings] = None,
    registry: Optional[List[Type[GenerationProvider]]] = None,
) -> List[GenerationProvider]:
    """Instantiate the configured chain in order, skipping providers without credentials"""
    settings = settings or default_settings
    by_key = {provider_cls.key: provider_cls for provider_cls in (registry or PROVIDER_REGISTRY)}

    providers: List[GenerationProvider] = []
    for key in settings.provider_chain:
        provider_cls = by_key.get(key)
        if provider_cls is None:
            raise ProviderConfigurationError(f"Unknown provider '{key}' in provider_chain")
        try:
            providers.append(provider_cls(settings))
        except ProviderConfigurationError as e:
            logger.warning(f"Provider '{key}' disabled: {e}")

    logger.info(f"Generation chain: {[p.name for p in providers] or 'empty'}")
    return providers
