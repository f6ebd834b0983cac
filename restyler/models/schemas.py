from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List


class RestyleMode(str, Enum):
    """Generation mode requested by the caller"""
    DIRECT = "direct"
    INTELLIGENT = "intelligent"


class StyleOption(BaseModel):
    """Interior style preset"""
    id: str
    name: str
    description: str
    prompt: str


class RoomAnalysis(BaseModel):
    """Structured description of the room from the vision model"""
    model_config = ConfigDict(populate_by_name=True)

    room_type: str = Field(alias="roomType")
    current_style: str = Field(alias="currentStyle")
    suggestions: List[str]
    color_palette: List[str] = Field(alias="colorPalette")
    lighting: str
    furniture: List[str]
    improvements: List[str]

    @classmethod
    def fallback(cls) -> "RoomAnalysis":
        """Neutral analysis used when the model answer cannot be parsed"""
        return cls(
            room_type="unknown",
            current_style="mixed",
            suggestions=["Improve lighting", "Add plants", "Organize space"],
            color_palette=["neutral", "white", "brown"],
            lighting="moderate",
            furniture=["seating", "table"],
            improvements=["color coordination", "lighting enhancement"],
        )


class ProcessingMetadata(BaseModel):
    """How a restyle result was produced"""
    model_config = ConfigDict(populate_by_name=True)

    provider_name: str = Field(alias="provider")
    processing_time_ms: int = Field(alias="processingTime")
    style_applied: str = Field(alias="styleApplied")
    intensity: float
    mode_used: RestyleMode = Field(alias="mode")


class GeneratedImage(BaseModel):
    """One generated variant"""
    model_config = ConfigDict(populate_by_name=True)

    data_url: str = Field(alias="dataUrl")


class RestyleResponse(BaseModel):
    """Restyle result envelope"""
    model_config = ConfigDict(populate_by_name=True)

    images: List[GeneratedImage]
    analysis: Optional[RoomAnalysis] = None
    intelligent_prompt: Optional[str] = Field(default=None, alias="intelligentPrompt")
    metadata: ProcessingMetadata


class RestyleHealth(BaseModel):
    """Provider availability, computed from configuration only"""
    model_config = ConfigDict(populate_by_name=True)

    intelligent_analysis: bool = Field(alias="intelligentAnalysis")
    providers: List[str]
