from enum import Enum


class ConductorState(str, Enum):
    """
    Conversational state of one live interview.
    ENDED and ABORTED are terminal.
    """
    NOT_STARTED = "NOT_STARTED"
    GREETING = "GREETING"
    AWAITING_ANSWER = "AWAITING_ANSWER"
    FOLLOW_UP = "FOLLOW_UP"
    TRANSITIONING = "TRANSITIONING"
    CONCLUDING = "CONCLUDING"
    ENDED = "ENDED"
    ABORTED = "ABORTED"

TERMINAL_STATES = frozenset({ConductorState.ENDED, ConductorState.ABORTED})

# Any live state may abort; terminal states go nowhere.
ALLOWED_TRANSITIONS = {
    ConductorState.NOT_STARTED: frozenset({ConductorState.GREETING, ConductorState.ABORTED}),
    ConductorState.GREETING: frozenset({ConductorState.AWAITING_ANSWER, ConductorState.CONCLUDING, ConductorState.ABORTED}),
    ConductorState.AWAITING_ANSWER: frozenset({ConductorState.FOLLOW_UP, ConductorState.TRANSITIONING, ConductorState.ABORTED}),
    ConductorState.FOLLOW_UP: frozenset({ConductorState.AWAITING_ANSWER, ConductorState.ABORTED}),
    ConductorState.TRANSITIONING: frozenset({ConductorState.AWAITING_ANSWER, ConductorState.CONCLUDING, ConductorState.ABORTED}),
    ConductorState.CONCLUDING: frozenset({ConductorState.ENDED, ConductorState.ABORTED}),
    ConductorState.ENDED: frozenset(),
    ConductorState.ABORTED: frozenset(),
}


def can_transition(current: ConductorState, target: ConductorState) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class Speaker(str, Enum):
    CANDIDATE = "Candidate"
    INTERVIEWER = "Interviewer"


class AbortReason(str, Enum):
    CANDIDATE_DISCONNECTED = "CANDIDATE_DISCONNECTED"
    CANCELLED = "CANCELLED"
    CHANNEL_FAILURE = "CHANNEL_FAILURE"
    OPERATOR = "OPERATOR"
