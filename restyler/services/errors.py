"""Restyle pipeline error taxonomy.

Only errors with a `user_message` other than the generic default are meant to
reach API callers. Everything else is an internal recovery signal that the
orchestrators catch and turn into a fallback.
"""
from typing import List, Optional


class RestyleError(Exception):
    """Base error for the restyle pipeline"""

    user_message = "An unexpected error occurred while processing the image."


class InvalidImage(RestyleError):
    user_message = "The uploaded file could not be read as an image. Please upload a valid JPEG, PNG or WebP photo."


class ImageTooLarge(RestyleError):
    user_message = "The image is too large to process even after compression. Please upload a smaller image."


class UnknownStyle(RestyleError):
    user_message = "Unknown style. Please choose one of the available styles."

    def __init__(self, style_key: str, available: List[str]):
        self.style_key = style_key
        self.available = available
        super().__init__(f"Unknown style '{style_key}', expected one of: {', '.join(available)}")


class GenerationUnavailable(RestyleError):
    user_message = "Image transformation is currently unavailable. Please try again with a different image or style."


class ProviderConfigurationError(RestyleError):
    """A provider or analyzer was built without its credential"""


class ProviderError(RestyleError):
    """A generation provider failed"""

    kind = "error"

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProviderTimeout(ProviderError):
    kind = "timeout"


class ProviderRateLimited(ProviderError):
    kind = "rate_limited"


class ProviderResourceExhausted(ProviderError):
    kind = "resource_exhausted"


class MalformedProviderOutput(ProviderError):
    kind = "malformed_output"


class NoOutputProduced(ProviderError):
    """Every candidate of a provider failed"""

    kind = "no_output"

    def __init__(self, provider: str, failures: List[ProviderError]):
        self.failures = failures
        kinds = ", ".join(f.kind for f in failures) or "none attempted"
        super().__init__(provider, f"no candidate produced an image ({kinds})")


class AllProvidersExhausted(RestyleError):
    def __init__(self, last_error: Optional[Exception]):
        self.last_error = last_error
        detail = str(last_error) if last_error else "no providers configured"
        super().__init__(f"All generation providers failed; last error: {detail}")


class VisionAnalysisError(RestyleError):
    """The vision model call failed or returned nothing"""


class HybridPipelineFailed(RestyleError):
    """Analyze-then-generate failed somewhere; callers degrade to direct mode"""
