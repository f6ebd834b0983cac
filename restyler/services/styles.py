"""Style catalog and intensity tiers shared by the direct and hybrid paths"""
from dataclasses import dataclass
from typing import Dict, List

from ..models.schemas import StyleOption
from .errors import UnknownStyle


STYLE_OPTIONS: List[StyleOption] = [
    StyleOption(
        id="modern",
        name="Modern",
        description="Clean lines, neutral palette, sleek finishes",
        prompt="Modern minimalist interior design with clean lines, neutral colors, and contemporary furniture",
    ),
    StyleOption(
        id="scandi",
        name="Scandinavian",
        description="Bright, light oak, soft textiles, plants",
        prompt="Scandinavian interior design with light wood, white walls, cozy textures, and hygge atmosphere",
    ),
    StyleOption(
        id="industrial",
        name="Industrial",
        description="Concrete, exposed metal, dark wood, moody lighting",
        prompt="Industrial interior design with exposed brick, metal fixtures, concrete floors, and urban aesthetics",
    ),
    StyleOption(
        id="minimal",
        name="Minimal",
        description="Uncluttered, clean lines, carefully chosen elements",
        prompt="Minimal interior design with uncluttered spaces, clean lines, and carefully chosen elements",
    ),
    StyleOption(
        id="boho",
        name="Boho",
        description="Warm earthy palette, layered textiles, artisanal accents",
        prompt="Bohemian interior design with colorful textiles, eclectic furniture, plants, and artistic decorations",
    ),
]

_STYLES_BY_ID: Dict[str, StyleOption] = {style.id: style for style in STYLE_OPTIONS}


@dataclass(frozen=True)
class IntensityTier:
    name: str
    qualifier: str  # appended to the static prompt
    description: str  # handed to the prompt synthesizer


SUBTLE = IntensityTier("subtle", "subtle transformation, gentle enhancements", "subtle and refined enhancements")
MODERATE = IntensityTier("moderate", "moderate transformation, balanced changes", "moderate but noticeable changes")
DRAMATIC = IntensityTier("dramatic", "dramatic transformation, bold changes", "dramatic and bold transformation")


def get_style(style_key: str) -> StyleOption:
    """Resolve a style key, failing closed on unknown keys"""
    style = _STYLES_BY_ID.get(style_key)
    if style is None:
        raise UnknownStyle(style_key, list(_STYLES_BY_ID))
    return style


def intensity_tier(intensity: float) -> IntensityTier:
    if intensity > 0.7:
        return DRAMATIC
    if intensity > 0.5:
        return MODERATE
    return SUBTLE


def build_prompt(style_key: str, intensity: float) -> str:
    """Static direct-mode prompt: base style template plus intensity qualifier"""
    return f"{get_style(style_key).prompt}, {intensity_tier(intensity).qualifier}"
