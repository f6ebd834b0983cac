from google import genai
from google.genai import types
from PIL import Image
from pydantic import ValidationError
from typing import Any, Dict, Optional
import json
from io import BytesIO

from ..config import Settings, settings as default_settings
from ..models.schemas import RoomAnalysis
from ..utils.logger import logger
from ..utils.timeouts import call_with_timeout
from .errors import ProviderConfigurationError, VisionAnalysisError
from .styles import get_style, intensity_tier


ANALYSIS_PROMPT = """
Analyze this interior space and respond in JSON format with these keys:

{
    "roomType": "Type of room (living room, bedroom, kitchen, etc.)",
    "currentStyle": "Current design style (modern, traditional, eclectic, etc.)",
    "suggestions": ["3-5 specific improvement suggestions"],
    "colorPalette": ["Current dominant colors"],
    "lighting": "Description of the current lighting situation",
    "furniture": ["Main furniture pieces visible"],
    "improvements": ["Specific areas that could be enhanced"]
}

IMPORTANT: Return ONLY valid JSON, no markdown formatting, no code blocks, no additional text.
"""

DESIGNER_INSTRUCTION = (
    "You are an expert interior designer. Create detailed, specific prompts for AI image "
    "generation that will transform rooms into the requested style while maintaining the "
    "room's structure and layout."
)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code block, if any"""
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_room_analysis(text: str) -> RoomAnalysis:
    """Parse the vision model answer, substituting the neutral analysis when unusable"""
    try:
        data = json.loads(strip_code_fences(text))
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        # snake_case keys are renamed to the wire names so they override the defaults
        aliases = {name: field.alias for name, field in RoomAnalysis.model_fields.items() if field.alias}

        # Missing keys are filled from the neutral analysis
        merged: Dict[str, Any] = RoomAnalysis.fallback().model_dump(by_alias=True)
        merged.update({aliases.get(key, key): value for key, value in data.items() if value is not None})
        return RoomAnalysis.model_validate(merged)

    except (ValueError, ValidationError) as e:
        logger.warning(f"Could not parse room analysis, using fallback: {e}; response: {text[:200]!r}")
        return RoomAnalysis.fallback()


class GeminiService:
    """Google Gemini vision analysis and prompt synthesis"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

        if not self.settings.gemini_api_key:
            raise ProviderConfigurationError("GEMINI_API_KEY is not configured")

        self.client = genai.Client(api_key=self.settings.gemini_api_key)

        logger.info("GeminiService initialized")

    async def _generate_text(
        self,
        model: str,
        contents: list,
        label: str,
        config: Optional[types.GenerateContentConfig] = None
    ) -> str:
        response = await call_with_timeout(
            self.client.models.generate_content,
            model=model,
            contents=contents,
            config=config,
            timeout=self.settings.gemini_timeout_seconds,
            label=label,
        )
        return (response.text or "").strip()

    async def analyze_room(self, image: bytes) -> RoomAnalysis:
        """Describe the room in the original photo.

        A malformed answer degrades to the neutral analysis. A failed call or
        an empty answer raises VisionAnalysisError.
        """
        try:
            logger.info(f"Analyzing room ({len(image)} bytes)")
            text = await self._generate_text(
                self.settings.gemini_vision_model,
                [ANALYSIS_PROMPT, Image.open(BytesIO(image))],
                "Room analysis",
            )
        except Exception as e:
            logger.error(f"Room analysis failed: {e}", exc_info=True)
            raise VisionAnalysisError(f"Room analysis failed: {e}") from e

        if not text:
            raise VisionAnalysisError("Room analysis returned an empty response")

        analysis = parse_room_analysis(text)
        logger.info(f"Room analysis completed: {analysis.room_type} / {analysis.current_style}")
        return analysis

    async def generate_style_prompt(self, analysis: RoomAnalysis, style_key: str, intensity: float) -> str:
        """Write a transformation prompt for the room, or fall back to the static style prompt"""
        style = get_style(style_key)
        tier = intensity_tier(intensity)

        request = f"""Based on this room analysis:
- Room Type: {analysis.room_type}
- Current Style: {analysis.current_style}
- Current Colors: {', '.join(analysis.color_palette)}
- Current Furniture: {', '.join(analysis.furniture)}
- Lighting: {analysis.lighting}

Create a detailed prompt to transform this into {style.name} style with {tier.description}.

Focus on:
- Specific furniture styles and materials
- Color schemes and textures
- Lighting and ambiance
- Decorative elements and accessories
- Wall treatments and finishes

Keep the room layout and basic structure intact. Provide only the transformation prompt, no explanations.
"""

        try:
            logger.info(f"Generating {style.id} prompt ({tier.name})")
            prompt = await self._generate_text(
                self.settings.gemini_text_model,
                [request],
                "Prompt synthesis",
                config=types.GenerateContentConfig(system_instruction=DESIGNER_INSTRUCTION),
            )
        except Exception as e:
            logger.error(f"Prompt synthesis failed, using static {style.id} prompt: {e}")
            return style.prompt

        if not prompt:
            logger.warning(f"Prompt synthesis returned nothing, using static {style.id} prompt")
            return style.prompt
        return prompt
