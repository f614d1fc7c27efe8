"""
Thresholds used by the sentiment analyzer.
Every rule in the analyzer reads its limits from here.
"""

# Pace (words per minute)
SLOW_SPEECH_RATE = 100
FAST_SPEECH_RATE = 180

# Audio confidence adjustments, applied in order to the baseline
BASELINE_CONFIDENCE = 0.5
FILLER_WORD_LIMIT = 5
FILLER_PENALTY = 0.2
PITCH_RANGE_HZ = (80, 300)
PITCH_PENALTY = 0.1
SILENCE_RATIO_LIMIT = 0.4
SILENCE_PENALTY = 0.15
LOW_VOLUME = 0.3
LOW_VOLUME_PENALTY = 0.1
HIGH_VOLUME = 0.7
HIGH_VOLUME_BONUS = 0.1
STEADY_RATE_RANGE = (120, 160)
STEADY_MAX_FILLERS = 2
STEADY_BONUS = 0.2

# Face
DEFAULT_EMOTION_CONFIDENCE = 0.5

# Cheating signals
TAB_SWITCH_HIGH_SEVERITY_ABOVE = 2
BACKGROUND_NOISE_LIMIT = 0.7
GAZE_DEVIATION_LIMIT = 0.6
MEDIUM_FLAGS_FOR_HIGH_RISK = 2
