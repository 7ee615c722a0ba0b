"""
Visibility Resolver

Decides which questions a respondent sees for their current answers:

1. Until the routing answer is given, only routing questions are shown.
2. Once it is given, the routing question disappears and questions are
   filtered to the chosen segment.
3. Conditional rules are evaluated against the parent question's answer.
"""

from typing import Any, List, Mapping, Optional, Sequence, Set
import logging

from .catalog import (
    QuestionCatalog,
    QuestionDefinition,
    VisibilityRule,
    get_default_catalog,
    is_list_answer
)

logger = logging.getLogger(__name__)


def _includes(answer: Any, value: Any) -> bool:
    if is_list_answer(answer):
        return value in answer
    return answer == value


def _includes_any(answer: Any, values: Sequence[Any]) -> bool:
    if is_list_answer(answer):
        return any(v in answer for v in values)
    # An unanswered scalar never matches
    if not answer:
        return False
    return answer in values


def evaluate_rule(rule: VisibilityRule, answers: Mapping[str, Any]) -> bool:
    """True when every populated predicate of the rule holds."""
    answer = answers.get(rule.question_id)

    if rule.show_if_equals is not None and answer != rule.show_if_equals:
        return False
    if rule.show_if_includes is not None and not _includes(answer, rule.show_if_includes):
        return False
    if rule.show_if_includes_any and not _includes_any(answer, rule.show_if_includes_any):
        return False
    if rule.hide_if_includes_any and _includes_any(answer, rule.hide_if_includes_any):
        return False
    if rule.skip_if_option is not None and answer == rule.skip_if_option:
        return False
    return True


class VisibilityResolver:
    """Computes the ordered list of visible questions for an answer set."""

    def __init__(self, catalog: Optional[QuestionCatalog] = None):
        self.catalog = catalog or get_default_catalog()

    def is_visible(self, question: QuestionDefinition, answers: Mapping[str, Any]) -> bool:
        segment = self.catalog.segment_for(answers)

        if segment is None:
            return question.is_routing
        if question.is_routing:
            return False
        if not question.applies_to(segment):
            return False
        if question.conditional is not None:
            return evaluate_rule(question.conditional, answers)
        return True

    def visible_questions(self, answers: Mapping[str, Any]) -> List[QuestionDefinition]:
        """Visible questions in catalog order."""
        return [q for q in self.catalog.questions if self.is_visible(q, answers)]

    def visible_ids(self, answers: Mapping[str, Any]) -> Set[str]:
        return {q.id for q in self.visible_questions(answers)}
