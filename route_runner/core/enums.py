from enum import Enum


class LocationPurpose(str, Enum):
    PERIMETER = "perimeter"
    DESTINATION = "destination"
    LANDMARK = "landmark"
    UNKNOWN = "unknown"

    @property
    def priority(self) -> int:
        return _PURPOSE_PRIORITY[self]


_PURPOSE_PRIORITY = {
    LocationPurpose.PERIMETER: 3,
    LocationPurpose.DESTINATION: 2,
    LocationPurpose.LANDMARK: 1,
    LocationPurpose.UNKNOWN: 0,
}


class ModelTier(str, Enum):
    FAST = "fast"
    BALANCED = "balanced"
    INTELLIGENT = "intelligent"


class AIProviderName(str, Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GEMINI = "gemini"
