from typing import List, Optional

from packages.aip_core.domain import utc_now_iso
from packages.aip_sentiment import rules
from packages.aip_sentiment.schema import (
    AudioFeatures,
    AudioSentiment,
    BehaviorSignals,
    CheatingAnalysis,
    CheatingFlag,
    CheatingFlagType,
    Emotion,
    FaceAnalysis,
    FaceFeatures,
    FacialSentiment,
    Pace,
    SentimentSample,
    Severity,
    Tone,
    VolumeLevel,
)


def classify_pace(speech_rate: float) -> Pace:
    if speech_rate < rules.SLOW_SPEECH_RATE:
        return Pace.SLOW
    if speech_rate > rules.FAST_SPEECH_RATE:
        return Pace.FAST
    return Pace.NORMAL

def classify_volume(volume: float) -> VolumeLevel:
    if volume > rules.HIGH_VOLUME:
        return VolumeLevel.HIGH
    if volume < rules.LOW_VOLUME:
        return VolumeLevel.LOW
    return VolumeLevel.NORMAL

def calculate_risk_level(flags: List[CheatingFlag]) -> Severity:
    high_count = sum(1 for f in flags if f.severity == Severity.HIGH)
    medium_count = sum(1 for f in flags if f.severity == Severity.MEDIUM)

    if high_count > 0:
        return Severity.HIGH
    if medium_count >= rules.MEDIUM_FLAGS_FOR_HIGH_RISK:
        return Severity.HIGH
    if medium_count == 1:
        return Severity.MEDIUM
    return Severity.LOW


class SentimentAnalyzer:
    """
    Derives affect and suspicious-behaviour signals from provider features.
    All methods are pure: identical features (and timestamp) give identical output.
    """

    def analyze_audio(self, features: AudioFeatures) -> AudioSentiment:
        """
        Ordered additive rules over a 0.5 baseline.
        The steady-speech rule runs last and overrides the tone.
        """
        pace = classify_pace(features.speech_rate)
        tone = Tone.NEUTRAL
        confidence = rules.BASELINE_CONFIDENCE

        # Many filler words read as nervousness
        if features.filler_word_count > rules.FILLER_WORD_LIMIT:
            tone = Tone.NERVOUS
            confidence -= rules.FILLER_PENALTY

        low_pitch, high_pitch = rules.PITCH_RANGE_HZ
        if features.pitch > high_pitch or features.pitch < low_pitch:
            tone = Tone.STRESSED
            confidence -= rules.PITCH_PENALTY

        if features.silence_ratio > rules.SILENCE_RATIO_LIMIT:
            confidence -= rules.SILENCE_PENALTY
            if tone == Tone.NEUTRAL:
                tone = Tone.NERVOUS

        if features.volume < rules.LOW_VOLUME:
            confidence -= rules.LOW_VOLUME_PENALTY
        elif features.volume > rules.HIGH_VOLUME and pace == Pace.NORMAL:
            confidence += rules.HIGH_VOLUME_BONUS
            if tone == Tone.NEUTRAL:
                tone = Tone.CONFIDENT

        low_rate, high_rate = rules.STEADY_RATE_RANGE
        if low_rate <= features.speech_rate <= high_rate and features.filler_word_count < rules.STEADY_MAX_FILLERS:
            confidence += rules.STEADY_BONUS
            tone = Tone.CONFIDENT

        confidence = max(0.0, min(1.0, confidence))

        return AudioSentiment(
            confidence=confidence,
            pace=pace,
            tone=tone,
            volume=classify_volume(features.volume),
        )

    def analyze_face(self, features: FaceFeatures, timestamp: Optional[str] = None) -> FaceAnalysis:
        timestamp = timestamp or utc_now_iso()
        flags: List[CheatingFlag] = []

        if features.face_count == 0:
            flags.append(CheatingFlag(
                type=CheatingFlagType.NO_FACE,
                severity=Severity.HIGH,
                timestamp=timestamp,
                description="No face detected in frame",
            ))
        elif features.face_count > 1:
            flags.append(CheatingFlag(
                type=CheatingFlagType.MULTIPLE_FACES,
                severity=Severity.HIGH,
                timestamp=timestamp,
                description=f"{features.face_count} faces detected in frame",
            ))

        confidence = features.emotion_confidence
        if confidence is None:
            confidence = rules.DEFAULT_EMOTION_CONFIDENCE

        facial = FacialSentiment(
            detected=features.face_count > 0,
            emotion=features.primary_emotion or Emotion.NEUTRAL,
            confidence=confidence,
            face_count=features.face_count,
        )
        return FaceAnalysis(facial=facial, flags=flags)

    def analyze_cheating_signals(self, signals: BehaviorSignals, timestamp: Optional[str] = None) -> CheatingAnalysis:
        timestamp = timestamp or utc_now_iso()
        flags: List[CheatingFlag] = []

        if signals.tab_switches > 0:
            severity = Severity.HIGH if signals.tab_switches > rules.TAB_SWITCH_HIGH_SEVERITY_ABOVE else Severity.MEDIUM
            flags.append(CheatingFlag(
                type=CheatingFlagType.TAB_SWITCH,
                severity=severity,
                timestamp=timestamp,
                description=f"Tab switched {signals.tab_switches} time(s)",
            ))

        # Loud background suggests someone else in the room
        if signals.background_noise_level > rules.BACKGROUND_NOISE_LIMIT:
            flags.append(CheatingFlag(
                type=CheatingFlagType.SUSPICIOUS_AUDIO,
                severity=Severity.MEDIUM,
                timestamp=timestamp,
                description="High background noise detected, possible consultation",
            ))

        if signals.eye_gaze_deviation is not None and signals.eye_gaze_deviation > rules.GAZE_DEVIATION_LIMIT:
            flags.append(CheatingFlag(
                type=CheatingFlagType.GAZE_DEVIATION,
                severity=Severity.LOW,
                timestamp=timestamp,
                description="Frequent gaze deviation from screen",
            ))

        typing = signals.typing_patterns
        if typing is not None and typing.sudden_copy_paste:
            flags.append(CheatingFlag(
                type=CheatingFlagType.COPY_PASTE,
                severity=Severity.MEDIUM,
                timestamp=timestamp,
                description="Sudden code paste detected",
            ))
        if typing is not None and typing.unusual_speed:
            flags.append(CheatingFlag(
                type=CheatingFlagType.UNUSUAL_TYPING,
                severity=Severity.LOW,
                timestamp=timestamp,
                description="Unusually fast typing detected",
            ))

        return CheatingAnalysis(
            flags=flags,
            risk_level=calculate_risk_level(flags),
            has_suspicious_behavior=len(flags) > 0,
        )

    def sample(
        self,
        audio_features: Optional[AudioFeatures] = None,
        face_features: Optional[FaceFeatures] = None,
        timestamp: Optional[str] = None
    ) -> SentimentSample:
        """Build one timestamped sample from whichever feature sets are present."""
        timestamp = timestamp or utc_now_iso()
        audio = self.analyze_audio(audio_features) if audio_features is not None else None
        facial = None
        if face_features is not None:
            facial = self.analyze_face(face_features, timestamp).facial
        return SentimentSample(timestamp=timestamp, audio=audio, facial=facial)
