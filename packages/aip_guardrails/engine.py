from typing import List

from packages.aip_core.errors import InvalidInputError
from packages.aip_core.logging import get_logger
from packages.aip_guardrails.rules import (
    INPUT_RULE_SETS,
    OUTPUT_RULE_SETS,
    ReplacementMode,
    RuleSet,
)
from packages.aip_guardrails.schema import GuardrailVerdict

logger = get_logger("aip.guardrails")


class GuardrailEngine:
    """
    Pattern based policy filter for interview text.

    Input checks stop questions about the system and attempts to steer off topic.
    Output checks keep scores and unprofessional phrasing off the candidate channel.
    Stateless: each check looks only at the text it is given.
    """

    def __init__(
        self,
        input_rules: List[RuleSet] = None,
        output_rules: List[RuleSet] = None
    ):
        self.input_rules = input_rules if input_rules is not None else INPUT_RULE_SETS
        self.output_rules = output_rules if output_rules is not None else OUTPUT_RULE_SETS

    def check_input(self, text: str) -> GuardrailVerdict:
        self._validate(text)
        for rule_set in self.input_rules:
            if self._matches(rule_set, text):
                logger.warning(f"Input guardrail tripped: {rule_set.name}")
                return self._verdict(rule_set, rule_set.replacement)
        return GuardrailVerdict(safe=True)

    def check_output(self, text: str) -> GuardrailVerdict:
        self._validate(text)
        for rule_set in self.output_rules:
            if not self._matches(rule_set, text):
                continue
            logger.warning(f"Output guardrail tripped: {rule_set.name}")
            if rule_set.mode == ReplacementMode.TARGETED:
                return self._verdict(rule_set, self._substitute(rule_set, text))
            return self._verdict(rule_set, rule_set.replacement)
        return GuardrailVerdict(safe=True)

    def describe_rules(self) -> dict:
        return {
            "input": [r.name for r in self.input_rules],
            "output": [r.name for r in self.output_rules],
        }

    @staticmethod
    def _validate(text: str):
        if text is None or not isinstance(text, str) or not text.strip():
            raise InvalidInputError("Guardrail check requires non-empty text")

    @staticmethod
    def _matches(rule_set: RuleSet, text: str) -> bool:
        return any(pattern.search(text) for pattern in rule_set.patterns)

    @staticmethod
    def _substitute(rule_set: RuleSet, text: str) -> str:
        # Every occurrence is replaced so a second pass finds nothing.
        sanitized = text
        for pattern in rule_set.patterns:
            sanitized = pattern.sub(rule_set.replacement, sanitized)
        return sanitized

    @staticmethod
    def _verdict(rule_set: RuleSet, replacement: str) -> GuardrailVerdict:
        return GuardrailVerdict(
            safe=False,
            reason=rule_set.reason,
            replacement=replacement,
            category=rule_set.category,
            rule=rule_set.name,
        )
