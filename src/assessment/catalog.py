"""
Question Catalog

Immutable, validated view of the questionnaire tables. Every scoring
component reads question and segment definitions from a ``QuestionCatalog``
instead of the raw dictionaries, so configuration mistakes surface once,
at load time, as ``CatalogValidationError``.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, FrozenSet, Union
from enum import Enum
import logging
import math

from src.patterns.weighted_scoring import linear_score, normalize_weights

from .questions import (
    ASSESSMENT_QUESTIONS,
    CATEGORY_NAMES,
    DEFAULT_SEGMENT,
    SEGMENT_KEYS,
    SEGMENTS
)

logger = logging.getLogger(__name__)


class CatalogValidationError(ValueError):
    """Raised when the question or segment tables are inconsistent."""


class QuestionType(Enum):
    """Answer types supported by the questionnaire."""
    SINGLE = "single"
    MULTI = "multi"
    SLIDER = "slider"
    NUMBER = "number"
    CURRENCY = "currency"


def is_list_answer(answer: Any) -> bool:
    """True for multi-select answers."""
    return isinstance(answer, (list, tuple, set, frozenset))


def as_number(answer: Any) -> Optional[float]:
    """Finite numeric value of a slider/number answer, or None when it has none."""
    if isinstance(answer, bool) or answer is None:
        return None
    if is_list_answer(answer) or isinstance(answer, Mapping):
        return None
    try:
        value = float(answer) if isinstance(answer, (int, float)) else float(str(answer).strip())
    except (ValueError, OverflowError):
        return None
    return value if math.isfinite(value) else None


def is_scalar_answer(value: Any) -> bool:
    """True for a selectable option value (string or number, never a container)."""
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


# =============================================================================
# Answer kinds
# =============================================================================

@dataclass(frozen=True)
class AnswerOption:
    """One selectable option of a single or multi question."""
    value: str
    label: str
    score: Optional[float] = None
    points: Optional[float] = None
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = {"value": self.value, "label": self.label}
        if self.score is not None:
            data["score"] = self.score
        if self.points is not None:
            data["points"] = self.points
        if self.description:
            data["description"] = self.description
        return data


@dataclass(frozen=True)
class ExclusiveOption:
    """A multi-select option that overrides every other selection."""
    value: str
    label: str
    score: float


@dataclass(frozen=True)
class SingleChoice:
    options: Tuple[AnswerOption, ...]

    type: ClassVar[QuestionType] = QuestionType.SINGLE

    def find_option(self, answer: Any) -> Optional[AnswerOption]:
        """Match by value, then by label for answers saved by older forms."""
        for option in self.options:
            if option.value == answer:
                return option
        for option in self.options:
            if option.label == answer:
                return option
        return None

    def score(self, answer: Any) -> Optional[float]:
        option = self.find_option(answer)
        return option.score if option is not None else None

    def is_valid(self, answer: Any) -> bool:
        return self.find_option(answer) is not None

    def to_dict(self) -> Dict[str, Any]:
        return {"options": [o.to_dict() for o in self.options]}


@dataclass(frozen=True)
class MultiChoice:
    options: Tuple[AnswerOption, ...]
    max_score: float = 100
    exclusive_option: Optional[ExclusiveOption] = None
    scoring: Optional[Callable[[List[Any]], float]] = None

    type: ClassVar[QuestionType] = QuestionType.MULTI

    def score(self, answer: Any) -> Optional[float]:
        if not is_list_answer(answer):
            return 0
        selected = [value for value in answer if is_scalar_answer(value)]

        if self.exclusive_option is not None and self.exclusive_option.value in selected:
            return self.exclusive_option.score

        if self.scoring is not None:
            return self.scoring(selected)

        points = {
            o.value: (o.points if o.points is not None else (o.score or 0))
            for o in self.options
        }
        total = sum(points.get(value, 0) for value in selected)
        return min(total, self.max_score)

    def is_valid(self, answer: Any) -> bool:
        if not is_list_answer(answer):
            return False
        known = {o.value for o in self.options}
        if self.exclusive_option is not None:
            known.add(self.exclusive_option.value)
        return all(is_scalar_answer(value) and value in known for value in answer)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "options": [o.to_dict() for o in self.options],
            "max_score": self.max_score
        }
        if self.exclusive_option is not None:
            data["exclusive_option"] = {
                "value": self.exclusive_option.value,
                "label": self.exclusive_option.label,
                "score": self.exclusive_option.score
            }
        return data


@dataclass(frozen=True)
class Slider:
    min_value: float
    max_value: float
    step: float = 1
    default: Optional[float] = None
    unit: str = ""
    scoring: Optional[Callable[[float], float]] = None

    type: ClassVar[QuestionType] = QuestionType.SLIDER

    def score(self, answer: Any) -> Optional[float]:
        value = as_number(answer)
        if value is None:
            return None
        if self.scoring is not None:
            return self.scoring(value)
        return linear_score(value, self.min_value, self.max_value)

    def is_valid(self, answer: Any) -> bool:
        value = as_number(answer)
        return value is not None and self.min_value <= value <= self.max_value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": self.min_value,
            "max": self.max_value,
            "step": self.step,
            "default": self.default,
            "unit": self.unit
        }


@dataclass(frozen=True)
class NumberInput:
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    step: float = 1
    default: Optional[float] = None
    unit: str = ""

    type: ClassVar[QuestionType] = QuestionType.NUMBER

    def score(self, answer: Any) -> Optional[float]:
        return None

    def is_valid(self, answer: Any) -> bool:
        value = as_number(answer)
        if value is None:
            return False
        if self.min_value is not None and value < self.min_value:
            return False
        if self.max_value is not None and value > self.max_value:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": self.min_value,
            "max": self.max_value,
            "step": self.step,
            "default": self.default,
            "unit": self.unit
        }


@dataclass(frozen=True)
class CurrencyInput(NumberInput):
    unit: str = "$"

    type: ClassVar[QuestionType] = QuestionType.CURRENCY


AnswerKind = Union[SingleChoice, MultiChoice, Slider, NumberInput, CurrencyInput]


# =============================================================================
# Question and segment definitions
# =============================================================================

@dataclass(frozen=True)
class VisibilityRule:
    """
    Conditional display rule keyed on another question's answer.

    Every populated predicate must hold for the question to be shown.
    """
    question_id: str
    show_if_equals: Any = None
    show_if_includes: Any = None
    show_if_includes_any: Tuple[Any, ...] = ()
    hide_if_includes_any: Tuple[Any, ...] = ()
    skip_if_option: Any = None

    @property
    def has_predicate(self) -> bool:
        return (
            self.show_if_equals is not None
            or self.show_if_includes is not None
            or bool(self.show_if_includes_any)
            or bool(self.hide_if_includes_any)
            or self.skip_if_option is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"question_id": self.question_id}
        if self.show_if_equals is not None:
            data["show_if_equals"] = self.show_if_equals
        if self.show_if_includes is not None:
            data["show_if_includes"] = self.show_if_includes
        if self.show_if_includes_any:
            data["show_if_includes_any"] = list(self.show_if_includes_any)
        if self.hide_if_includes_any:
            data["hide_if_includes_any"] = list(self.hide_if_includes_any)
        if self.skip_if_option is not None:
            data["skip_if_option"] = self.skip_if_option
        return data


@dataclass(frozen=True)
class AutoScore:
    """Score a question contributes while its conditional hides it."""
    score: float
    when_hidden: bool = False
    when_parent_is: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class QuestionDefinition:
    """A single validated questionnaire item."""
    id: str
    text: str
    kind: AnswerKind
    segments: FrozenSet[str]
    category_index: Optional[int] = None
    category_weights: Tuple[Tuple[int, float], ...] = ()
    is_diagnostic: bool = False
    is_routing: bool = False
    conditional: Optional[VisibilityRule] = None
    auto_score: Optional[AutoScore] = None
    help_text: str = ""
    industry_context: str = ""
    is_sub_question: bool = False

    @property
    def type(self) -> QuestionType:
        return self.kind.type

    @property
    def is_scored(self) -> bool:
        """Diagnostic and routing questions never reach category scores."""
        return not (self.is_diagnostic or self.is_routing)

    def applies_to(self, segment: Optional[str]) -> bool:
        return segment in self.segments

    def weight_pairs(self) -> Tuple[Tuple[int, float], ...]:
        """(category_index, weight) pairs this question contributes to."""
        if self.category_weights:
            return self.category_weights
        if self.category_index is None:
            return ()
        return ((self.category_index, 1.0),)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "text": self.text,
            "help_text": self.help_text,
            "type": self.type.value,
            "category_index": self.category_index,
            "category_weights": [[i, w] for i, w in self.category_weights],
            "is_diagnostic": self.is_diagnostic,
            "is_routing": self.is_routing,
            "is_sub_question": self.is_sub_question,
            "industry_context": self.industry_context,
            "segments": sorted(self.segments),
            "conditional": self.conditional.to_dict() if self.conditional else None
        }
        data.update(self.kind.to_dict())
        return data


@dataclass(frozen=True)
class SegmentConfig:
    """Per-segment category weights and metadata."""
    id: str
    label: str
    category_weights: Tuple[float, ...]
    description: str = ""
    use_two_categories: bool = False
    target_ar_days: int = 35
    characteristics: Mapping[str, str] = field(default_factory=dict, compare=False)

    @property
    def active_categories(self) -> Tuple[int, ...]:
        """Category indexes that take part in scoring for this segment."""
        if self.use_two_categories:
            return (0, 1)
        return tuple(range(len(self.category_weights)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "category_weights": list(self.category_weights),
            "use_two_categories": self.use_two_categories,
            "active_categories": list(self.active_categories),
            "target_ar_days": self.target_ar_days,
            "characteristics": dict(self.characteristics)
        }


class QuestionCatalog:
    """
    Ordered question definitions plus segment configuration.

    Example:
        catalog = load_catalog()
        segment = catalog.resolve_segment({"practice_type": "BH"})
        config = catalog.segment_config(segment)
        print(config.category_weights)  # (0.35, 0.4, 0.25)
    """

    def __init__(
        self,
        questions: Sequence[QuestionDefinition],
        segments: Mapping[str, SegmentConfig],
        category_names: Sequence[str],
        default_segment: str = DEFAULT_SEGMENT,
        segment_keys: Sequence[str] = tuple(SEGMENT_KEYS)
    ):
        self.questions: Tuple[QuestionDefinition, ...] = tuple(questions)
        self.segments: Mapping[str, SegmentConfig] = MappingProxyType(dict(segments))
        self.category_names: Tuple[str, ...] = tuple(category_names)
        self.default_segment = default_segment
        self.segment_keys: Tuple[str, ...] = tuple(segment_keys)
        self._by_id = {q.id: q for q in self.questions}

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self):
        return iter(self.questions)

    def get_question(self, question_id: str) -> Optional[QuestionDefinition]:
        return self._by_id.get(question_id)

    def segment_for(self, answers: Mapping[str, Any]) -> Optional[str]:
        """The routing answer, or None while the segment is unset."""
        for key in self.segment_keys:
            value = answers.get(key)
            if value and isinstance(value, str):
                return value
        return None

    def resolve_segment(self, answers: Mapping[str, Any]) -> str:
        return self.segment_for(answers) or self.default_segment

    def segment_config(self, segment: Optional[str]) -> SegmentConfig:
        """Config for a segment, falling back to the default segment."""
        config = self.segments.get(segment) if segment else None
        if config is None:
            if segment:
                logger.warning(f"Unknown segment '{segment}', using '{self.default_segment}' weights")
            config = self.segments[self.default_segment]
        return config

    def category_name(self, index: int) -> str:
        if 0 <= index < len(self.category_names):
            return self.category_names[index]
        return "Unknown"

    def questions_for_segment(self, segment: Optional[str]) -> List[QuestionDefinition]:
        return [q for q in self.questions if q.applies_to(segment)]

    def routing_questions(self) -> List[QuestionDefinition]:
        return [q for q in self.questions if q.is_routing]


# =============================================================================
# Loading and validation
# =============================================================================

def _build_options(question_id: str, raw_options: Any) -> Tuple[AnswerOption, ...]:
    if not raw_options:
        raise CatalogValidationError(f"Question '{question_id}' has no options")
    options = []
    for raw in raw_options:
        if "value" not in raw:
            raise CatalogValidationError(f"Question '{question_id}' has an option without a value")
        options.append(AnswerOption(
            value=raw["value"],
            label=raw.get("label", str(raw["value"])),
            score=raw.get("score"),
            points=raw.get("points"),
            description=raw.get("description", "")
        ))
    return tuple(options)


def _build_kind(question_id: str, question_type: QuestionType, raw: Mapping[str, Any]) -> AnswerKind:
    if question_type == QuestionType.SINGLE:
        return SingleChoice(options=_build_options(question_id, raw.get("options")))

    if question_type == QuestionType.MULTI:
        exclusive = raw.get("exclusive_option")
        return MultiChoice(
            options=_build_options(question_id, raw.get("options")),
            max_score=raw.get("max_score", 100),
            exclusive_option=ExclusiveOption(
                value=exclusive["value"],
                label=exclusive.get("label", exclusive["value"]),
                score=exclusive["score"]
            ) if exclusive else None,
            scoring=raw.get("scoring")
        )

    if question_type == QuestionType.SLIDER:
        min_value = raw.get("min")
        max_value = raw.get("max")
        if min_value is None or max_value is None or max_value <= min_value:
            raise CatalogValidationError(
                f"Slider '{question_id}' needs min < max (got min={min_value}, max={max_value})"
            )
        return Slider(
            min_value=min_value,
            max_value=max_value,
            step=raw.get("step", 1),
            default=raw.get("default"),
            unit=raw.get("unit", ""),
            scoring=raw.get("scoring")
        )

    numeric_class = CurrencyInput if question_type == QuestionType.CURRENCY else NumberInput
    extra = {"unit": raw["unit"]} if "unit" in raw else {}
    return numeric_class(
        min_value=raw.get("min"),
        max_value=raw.get("max"),
        step=raw.get("step", 1),
        default=raw.get("default"),
        **extra
    )


def _build_category_weights(
    question_id: str,
    raw_weights: Any,
    category_count: int
) -> Tuple[Tuple[int, float], ...]:
    """Accepts positional lists ([0.7, 0.3]) or {index: weight} mappings."""
    if not raw_weights:
        return ()
    items = raw_weights.items() if isinstance(raw_weights, Mapping) else enumerate(raw_weights)

    pairs = []
    for index, weight in items:
        index = int(index)
        if not 0 <= index < category_count:
            raise CatalogValidationError(
                f"Question '{question_id}' weights category {index}, "
                f"only {category_count} categories exist"
            )
        if weight < 0:
            raise CatalogValidationError(f"Question '{question_id}' has a negative category weight")
        if weight > 0:
            pairs.append((index, float(weight)))
    return tuple(sorted(pairs))


def _build_rule(question_id: str, raw_rule: Optional[Mapping[str, Any]]) -> Optional[VisibilityRule]:
    if not raw_rule:
        return None
    if not raw_rule.get("question_id"):
        raise CatalogValidationError(f"Conditional on '{question_id}' names no question")
    rule = VisibilityRule(
        question_id=raw_rule["question_id"],
        show_if_equals=raw_rule.get("show_if_equals"),
        show_if_includes=raw_rule.get("show_if_includes"),
        show_if_includes_any=tuple(raw_rule.get("show_if_includes_any") or ()),
        hide_if_includes_any=tuple(raw_rule.get("hide_if_includes_any") or ()),
        skip_if_option=raw_rule.get("skip_if_option")
    )
    if not rule.has_predicate:
        raise CatalogValidationError(f"Conditional on '{question_id}' has no predicate")
    return rule


def _build_auto_score(question_id: str, raw_auto: Optional[Mapping[str, Any]]) -> Optional[AutoScore]:
    if not raw_auto:
        return None
    if raw_auto.get("score") is None:
        raise CatalogValidationError(f"Auto score on '{question_id}' has no score")
    return AutoScore(
        score=raw_auto["score"],
        when_hidden=bool(raw_auto.get("when_hidden", False)),
        when_parent_is=tuple(raw_auto.get("when_parent_is") or ())
    )


def _build_question(
    raw: Mapping[str, Any],
    segment_ids: Sequence[str],
    category_count: int
) -> QuestionDefinition:
    question_id = raw.get("id")
    if not question_id:
        raise CatalogValidationError("Question without an id")

    type_name = raw.get("type")
    try:
        question_type = QuestionType(type_name)
    except ValueError:
        raise CatalogValidationError(f"Question '{question_id}' has unknown type '{type_name}'")

    segments = frozenset(raw.get("segments") or segment_ids)
    unknown_segments = segments - set(segment_ids)
    if unknown_segments:
        raise CatalogValidationError(
            f"Question '{question_id}' names unknown segments {sorted(unknown_segments)}"
        )

    category_index = raw.get("category_index")
    if category_index is not None and not 0 <= category_index < category_count:
        raise CatalogValidationError(
            f"Question '{question_id}' has category index {category_index} outside 0..{category_count - 1}"
        )

    is_diagnostic = bool(raw.get("is_diagnostic", False))
    is_routing = bool(raw.get("is_routing", False))
    category_weights = _build_category_weights(question_id, raw.get("category_weights"), category_count)

    if not (is_diagnostic or is_routing) and category_index is None and not category_weights:
        raise CatalogValidationError(f"Scored question '{question_id}' has no category")

    conditional = _build_rule(question_id, raw.get("conditional"))
    auto_score = _build_auto_score(question_id, raw.get("auto_score"))
    if auto_score is not None and auto_score.when_parent_is and conditional is None:
        raise CatalogValidationError(
            f"Auto score on '{question_id}' depends on a parent answer but the question has no conditional"
        )

    return QuestionDefinition(
        id=question_id,
        text=raw.get("text", ""),
        kind=_build_kind(question_id, question_type, raw),
        segments=segments,
        category_index=category_index,
        category_weights=category_weights,
        is_diagnostic=is_diagnostic,
        is_routing=is_routing,
        conditional=conditional,
        auto_score=auto_score,
        help_text=raw.get("help_text", ""),
        industry_context=raw.get("industry_context", ""),
        is_sub_question=bool(raw.get("is_sub_question", False))
    )


def _build_segment(segment_id: str, raw: Mapping[str, Any], category_count: int) -> SegmentConfig:
    weights = list(raw.get("category_weights") or [])
    if len(weights) != category_count:
        raise CatalogValidationError(
            f"Segment '{segment_id}' needs {category_count} category weights, got {len(weights)}"
        )
    if any(w < 0 for w in weights):
        raise CatalogValidationError(f"Segment '{segment_id}' has a negative category weight")

    use_two_categories = bool(raw.get("use_two_categories", False))
    if use_two_categories and category_count == 3 and weights[2] != 0:
        raise CatalogValidationError(
            f"Two-category segment '{segment_id}' must weight the third category 0, got {weights[2]}"
        )

    try:
        weights = normalize_weights(weights, label=f"Segment '{segment_id}' category weights")
    except ValueError as e:
        raise CatalogValidationError(str(e))

    return SegmentConfig(
        id=segment_id,
        label=raw.get("label", segment_id),
        category_weights=tuple(weights),
        description=raw.get("description", ""),
        use_two_categories=use_two_categories,
        target_ar_days=raw.get("target_ar_days", 35),
        characteristics=MappingProxyType(dict(raw.get("characteristics") or {}))
    )


def load_catalog(
    questions: Sequence[Mapping[str, Any]] = ASSESSMENT_QUESTIONS,
    segments: Mapping[str, Mapping[str, Any]] = SEGMENTS,
    category_names: Sequence[str] = CATEGORY_NAMES,
    default_segment: str = DEFAULT_SEGMENT,
    segment_keys: Sequence[str] = SEGMENT_KEYS
) -> QuestionCatalog:
    """
    Build and validate a catalog from raw tables.

    Raises:
        CatalogValidationError: on any inconsistency in the tables.
    """
    category_count = len(category_names)
    if category_count not in (2, 3):
        raise CatalogValidationError(f"Expected 2 or 3 categories, got {category_count}")

    segment_configs = {
        segment_id: _build_segment(segment_id, raw, category_count)
        for segment_id, raw in segments.items()
    }
    if default_segment not in segment_configs:
        raise CatalogValidationError(f"Default segment '{default_segment}' is not configured")

    definitions: List[QuestionDefinition] = []
    seen = set()
    for raw in questions:
        definition = _build_question(raw, list(segment_configs), category_count)
        if definition.id in seen:
            raise CatalogValidationError(f"Duplicate question id '{definition.id}'")
        seen.add(definition.id)
        definitions.append(definition)

    for definition in definitions:
        if definition.conditional and definition.conditional.question_id not in seen:
            raise CatalogValidationError(
                f"Conditional on '{definition.id}' references unknown question "
                f"'{definition.conditional.question_id}'"
            )

    logger.debug(f"Loaded catalog with {len(definitions)} questions and {len(segment_configs)} segments")

    return QuestionCatalog(
        questions=definitions,
        segments=segment_configs,
        category_names=category_names,
        default_segment=default_segment,
        segment_keys=segment_keys
    )


# Singleton instance
_catalog: Optional[QuestionCatalog] = None


def get_default_catalog() -> QuestionCatalog:
    """Get or create the catalog built from the shipped tables"""
    global _catalog
    if _catalog is None:
        _catalog = load_catalog()
    return _catalog
