from enum import Enum
from typing import List, Optional
from pydantic import Field

from packages.aip_core.dto import BaseDTO


class Pace(str, Enum):
    SLOW = "SLOW"
    NORMAL = "NORMAL"
    FAST = "FAST"

class Tone(str, Enum):
    NERVOUS = "NERVOUS"
    CONFIDENT = "CONFIDENT"
    NEUTRAL = "NEUTRAL"
    STRESSED = "STRESSED"

class VolumeLevel(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"

class Emotion(str, Enum):
    HAPPY = "HAPPY"
    NEUTRAL = "NEUTRAL"
    STRESSED = "STRESSED"
    NERVOUS = "NERVOUS"
    CONFUSED = "CONFUSED"
    FOCUSED = "FOCUSED"

class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

class CheatingFlagType(str, Enum):
    TAB_SWITCH = "TAB_SWITCH"
    MULTIPLE_FACES = "MULTIPLE_FACES"
    NO_FACE = "NO_FACE"
    SUSPICIOUS_AUDIO = "SUSPICIOUS_AUDIO"
    OFF_TOPIC = "OFF_TOPIC"
    COACHING_SUSPECTED = "COACHING_SUSPECTED"
    UNUSUAL_PAUSE = "UNUSUAL_PAUSE"
    COPY_PASTE = "COPY_PASTE"
    UNUSUAL_TYPING = "UNUSUAL_TYPING"
    GAZE_DEVIATION = "GAZE_DEVIATION"


# -------------------------------------------------------------------------
# Inputs (features extracted by the capability provider)
# -------------------------------------------------------------------------
class AudioFeatures(BaseDTO):
    volume: float = Field(..., ge=0.0, le=1.0)
    pitch: float = Field(..., description="Hz")
    speech_rate: float = Field(..., alias="speechRate", description="Words per minute")
    silence_ratio: float = Field(..., alias="silenceRatio", ge=0.0, le=1.0)
    filler_word_count: int = Field(..., alias="fillerWordCount", ge=0)

class FaceFeatures(BaseDTO):
    face_count: int = Field(..., alias="faceCount", ge=0)
    primary_emotion: Optional[Emotion] = Field(None, alias="primaryEmotion")
    emotion_confidence: Optional[float] = Field(None, alias="emotionConfidence", ge=0.0, le=1.0)

class TypingPatterns(BaseDTO):
    sudden_copy_paste: bool = Field(False, alias="suddenCopyPaste")
    unusual_speed: bool = Field(False, alias="unusualSpeed")

class BehaviorSignals(BaseDTO):
    tab_switches: int = Field(0, alias="tabSwitches", ge=0)
    background_noise_level: float = Field(0.0, alias="backgroundNoiseLevel", ge=0.0, le=1.0)
    eye_gaze_deviation: Optional[float] = Field(None, alias="eyeGazeDeviation", ge=0.0, le=1.0)
    typing_patterns: Optional[TypingPatterns] = Field(None, alias="typingPatterns")


# -------------------------------------------------------------------------
# Outputs
# -------------------------------------------------------------------------
class AudioSentiment(BaseDTO):
    confidence: float = Field(..., ge=0.0, le=1.0)
    pace: Pace
    tone: Tone
    volume: VolumeLevel

class FacialSentiment(BaseDTO):
    detected: bool
    emotion: Emotion = Emotion.NEUTRAL
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    face_count: int = Field(..., alias="faceCount")

class CheatingFlag(BaseDTO):
    type: CheatingFlagType
    severity: Severity
    timestamp: str
    description: str

class FaceAnalysis(BaseDTO):
    facial: FacialSentiment
    flags: List[CheatingFlag] = Field(default_factory=list)

class CheatingAnalysis(BaseDTO):
    flags: List[CheatingFlag] = Field(default_factory=list)
    risk_level: Severity = Field(..., alias="riskLevel")
    has_suspicious_behavior: bool = Field(..., alias="hasSuspiciousBehavior")

class SentimentSample(BaseDTO):
    """Timestamped affect reading. Appended to the session history in time order."""
    timestamp: str
    audio: Optional[AudioSentiment] = Field(None, alias="audioSentiment")
    facial: Optional[FacialSentiment] = Field(None, alias="facialSentiment")
