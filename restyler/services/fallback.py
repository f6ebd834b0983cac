"""Sequential provider fallback"""
from dataclasses import dataclass
from typing import List, Optional

from ..utils.logger import logger
from .errors import AllProvidersExhausted, ProviderError
from .providers import GenerationProvider

MAX_OUTPUTS = 5


@dataclass
class GenerationRequest:
    image: bytes
    prompt: str
    desired_output_count: int

    def __post_init__(self):
        if not 1 <= self.desired_output_count <= MAX_OUTPUTS:
            raise ValueError(f"desired_output_count must be between 1 and {MAX_OUTPUTS}")


@dataclass
class ChainResult:
    images: List[str]
    provider_name: str


class FallbackChain:
    """Try providers in order until one returns at least one image.

    Providers are never raced: each call is billed, and the next one is only
    worth paying for once the previous has failed.
    """

    def __init__(self, providers: List[GenerationProvider]):
        self.providers = list(providers)

    async def run(self, request: GenerationRequest) -> ChainResult:
        last_error: Optional[ProviderError] = None

        for position, provider in enumerate(self.providers, start=1):
            try:
                logger.info(f"Fallback chain: trying {provider.name} ({position}/{len(self.providers)})")
                images = await provider.generate(request.image, request.prompt, request.desired_output_count)
            except ProviderError as e:
                last_error = e
                logger.warning(f"{provider.name} failed ({e.kind}), moving on: {e}")
                continue

            return ChainResult(images=images, provider_name=provider.name)

        logger.error(f"All {len(self.providers)} provider(s) failed")
        raise AllProvidersExhausted(last_error)
