import os

os.environ.setdefault("LOG_TO_FILE", "false")

import time
from io import BytesIO
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image

from restyler.config import Settings
from restyler.models.schemas import RoomAnalysis
from restyler.services.providers import GenerationProvider


def make_image(width: int = 640, height: int = 480, fmt: str = "JPEG", color=(120, 90, 60), **save_kwargs) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt, **save_kwargs)
    return buffer.getvalue()


def make_noise_image(width: int, height: int) -> bytes:
    image = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class FakeProvider(GenerationProvider):
    """Scripted provider: outcome per candidate index, bytes or an exception"""

    def __init__(
        self,
        settings: Settings,
        name: str = "Fake",
        outcomes: Optional[List[Any]] = None,
        delays: Optional[Dict[int, float]] = None,
        timeout: float = 2.0,
    ):
        super().__init__(settings)
        self.name = name
        self.key = name.lower()
        self.outcomes = outcomes if outcomes is not None else [make_image(64, 64, "PNG")]
        self.delays = delays or {}
        self._timeout = timeout
        self.calls = []

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    def _request_candidate(self, image: bytes, prompt: str, index: int) -> Any:
        self.calls.append((prompt, index))
        if index in self.delays:
            time.sleep(self.delays[index])
        outcome = self.outcomes[min(index, len(self.outcomes) - 1)]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def _read_output(self, output: Any) -> bytes:
        return output


class FakeAnalyzer:
    def __init__(self, prompt: str = "a cozy scandinavian living room", prompt_error: Optional[Exception] = None):
        self.prompt = prompt
        self.prompt_error = prompt_error
        self.analyzed = []

    async def analyze_room(self, image: bytes) -> RoomAnalysis:
        self.analyzed.append(image)
        return RoomAnalysis(
            room_type="living room",
            current_style="traditional",
            suggestions=["Add plants"],
            color_palette=["beige"],
            lighting="warm",
            furniture=["sofa"],
            improvements=["declutter"],
        )

    async def generate_style_prompt(self, analysis: RoomAnalysis, style_key: str, intensity: float) -> str:
        if self.prompt_error is not None:
            raise self.prompt_error
        return self.prompt


class FakeGenaiModels:
    """Stands in for genai.Client().models, answering with queued texts or exceptions"""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def generate_content(self, model, contents, config=None):
        self.requests.append({"model": model, "contents": contents, "config": config})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(text=response)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        replicate_api_token=None,
        gemini_api_key=None,
        log_to_file=False,
        output_fetch_timeout_seconds=2,
    )


@pytest.fixture
def room_photo():
    return make_image(1600, 1200)


@pytest.fixture
def output_image():
    return make_image(64, 64, "PNG")
