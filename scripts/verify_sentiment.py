import sys
import os
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.aip_sentiment.analyzer import SentimentAnalyzer, calculate_risk_level
from packages.aip_sentiment.schema import (
    AudioFeatures,
    BehaviorSignals,
    CheatingFlagType,
    Emotion,
    FaceFeatures,
    Pace,
    Severity,
    Tone,
    TypingPatterns,
    VolumeLevel,
)


def audio(**overrides) -> AudioFeatures:
    values = dict(volume=0.5, pitch=150, speech_rate=110, silence_ratio=0.1, filler_word_count=3)
    values.update(overrides)
    return AudioFeatures(**values)


class TestAudioSentiment(unittest.TestCase):
    def setUp(self):
        self.analyzer = SentimentAnalyzer()

    def test_steady_confident_speaker(self):
        features = AudioFeatures(speechRate=140, fillerWordCount=1, volume=0.8, pitch=150, silenceRatio=0.1)
        result = self.analyzer.analyze_audio(features)
        self.assertEqual(result.tone, Tone.CONFIDENT)
        self.assertEqual(result.pace, Pace.NORMAL)
        self.assertEqual(result.volume, VolumeLevel.HIGH)
        self.assertAlmostEqual(result.confidence, 0.8)
        self.assertTrue(0.0 <= result.confidence <= 1.0)

    def test_neutral_baseline(self):
        result = self.analyzer.analyze_audio(audio())
        self.assertEqual(result.tone, Tone.NEUTRAL)
        self.assertAlmostEqual(result.confidence, 0.5)

    def test_filler_words_read_as_nervous(self):
        result = self.analyzer.analyze_audio(audio(filler_word_count=8, speech_rate=200))
        self.assertEqual(result.tone, Tone.NERVOUS)
        self.assertEqual(result.pace, Pace.FAST)
        self.assertAlmostEqual(result.confidence, 0.3)

    def test_pitch_out_of_range_reads_as_stressed(self):
        result = self.analyzer.analyze_audio(audio(pitch=350))
        self.assertEqual(result.tone, Tone.STRESSED)
        self.assertAlmostEqual(result.confidence, 0.4)

    def test_silence_alone_reads_as_nervous(self):
        result = self.analyzer.analyze_audio(audio(silence_ratio=0.6))
        self.assertEqual(result.tone, Tone.NERVOUS)
        self.assertAlmostEqual(result.confidence, 0.35)

    def test_confidence_is_clamped(self):
        result = self.analyzer.analyze_audio(
            audio(filler_word_count=10, pitch=50, silence_ratio=0.9, volume=0.1, speech_rate=90)
        )
        self.assertEqual(result.confidence, 0.0)
        self.assertEqual(result.tone, Tone.STRESSED)
        self.assertEqual(result.pace, Pace.SLOW)
        self.assertEqual(result.volume, VolumeLevel.LOW)

    def test_same_features_same_result(self):
        features = audio(pitch=320, filler_word_count=6)
        self.assertEqual(self.analyzer.analyze_audio(features), self.analyzer.analyze_audio(features))


class TestFaceAndCheating(unittest.TestCase):
    def setUp(self):
        self.analyzer = SentimentAnalyzer()

    def test_no_face(self):
        result = self.analyzer.analyze_face(FaceFeatures(face_count=0), timestamp="t0")
        self.assertFalse(result.facial.detected)
        self.assertEqual(len(result.flags), 1)
        self.assertEqual(result.flags[0].type, CheatingFlagType.NO_FACE)
        self.assertEqual(result.flags[0].severity, Severity.HIGH)
        self.assertEqual(result.flags[0].timestamp, "t0")

    def test_multiple_faces(self):
        result = self.analyzer.analyze_face(FaceFeatures(face_count=2))
        self.assertEqual(result.flags[0].type, CheatingFlagType.MULTIPLE_FACES)

    def test_single_face_defaults(self):
        result = self.analyzer.analyze_face(FaceFeatures(face_count=1))
        self.assertEqual(result.flags, [])
        self.assertEqual(result.facial.emotion, Emotion.NEUTRAL)
        self.assertEqual(result.facial.confidence, 0.5)

        focused = self.analyzer.analyze_face(
            FaceFeatures(face_count=1, primary_emotion=Emotion.FOCUSED, emotion_confidence=0.9)
        )
        self.assertEqual(focused.facial.emotion, Emotion.FOCUSED)
        self.assertEqual(focused.facial.confidence, 0.9)

    def test_tab_switch_severity(self):
        many = self.analyzer.analyze_cheating_signals(BehaviorSignals(tab_switches=3))
        self.assertEqual(many.flags[0].type, CheatingFlagType.TAB_SWITCH)
        self.assertEqual(many.flags[0].severity, Severity.HIGH)
        self.assertEqual(many.risk_level, Severity.HIGH)

        once = self.analyzer.analyze_cheating_signals(BehaviorSignals(tab_switches=1))
        self.assertEqual(once.flags[0].severity, Severity.MEDIUM)
        self.assertEqual(once.risk_level, Severity.MEDIUM)

    def test_two_medium_flags_are_high_risk(self):
        result = self.analyzer.analyze_cheating_signals(
            BehaviorSignals(tab_switches=1, background_noise_level=0.9)
        )
        self.assertEqual([f.type for f in result.flags], [CheatingFlagType.TAB_SWITCH, CheatingFlagType.SUSPICIOUS_AUDIO])
        self.assertEqual(result.risk_level, Severity.HIGH)
        self.assertTrue(result.has_suspicious_behavior)

    def test_low_signals(self):
        result = self.analyzer.analyze_cheating_signals(BehaviorSignals(
            eye_gaze_deviation=0.8,
            typing_patterns=TypingPatterns(unusual_speed=True),
        ))
        self.assertEqual({f.type for f in result.flags}, {CheatingFlagType.GAZE_DEVIATION, CheatingFlagType.UNUSUAL_TYPING})
        self.assertEqual(result.risk_level, Severity.LOW)

    def test_copy_paste(self):
        result = self.analyzer.analyze_cheating_signals(
            BehaviorSignals(typing_patterns=TypingPatterns(sudden_copy_paste=True))
        )
        self.assertEqual(result.flags[0].type, CheatingFlagType.COPY_PASTE)
        self.assertEqual(result.flags[0].severity, Severity.MEDIUM)

    def test_clean_signals(self):
        result = self.analyzer.analyze_cheating_signals(BehaviorSignals())
        self.assertEqual(result.flags, [])
        self.assertEqual(result.risk_level, Severity.LOW)
        self.assertFalse(result.has_suspicious_behavior)
        self.assertEqual(calculate_risk_level([]), Severity.LOW)


class TestSamples(unittest.TestCase):
    def test_sample_combines_audio_and_face(self):
        analyzer = SentimentAnalyzer()
        sample = analyzer.sample(audio(), FaceFeatures(face_count=1), timestamp="2026-01-01T00:00:00+00:00")
        self.assertEqual(sample.timestamp, "2026-01-01T00:00:00+00:00")
        self.assertEqual(sample.audio.tone, Tone.NEUTRAL)
        self.assertTrue(sample.facial.detected)

    def test_sample_without_face(self):
        sample = SentimentAnalyzer().sample(audio_features=audio())
        self.assertIsNone(sample.facial)
        self.assertIsNotNone(sample.timestamp)


if __name__ == "__main__":
    unittest.main()
