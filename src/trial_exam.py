"""
CASA ATPL flight planning trial exam generator.
Picks 17 questions per the scenario's mark distribution using a seeded RNG, so the
same seed and question bank always produce the same exam.
"""
import logging
import random
from collections import Counter
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence

from engine import MARK_VALUES, TRIAL_EXAM_QUESTION_COUNT, TRIAL_EXAM_TIME_LIMIT_MINUTES
from src.models import Question

logger = logging.getLogger(__name__)


class InsufficientQuestionsError(ValueError):
    """The (filtered) bank cannot fill a scenario's mark distribution."""


@dataclass(frozen=True)
class ExamScenario:
    id: str
    label: str
    total_marks: int
    distribution: Dict[int, int]  # mark value -> number of questions
    description: str


@dataclass(frozen=True)
class TrialExam:
    id: str
    scenario: str
    seed: int
    total_marks: int
    distribution: Dict[int, int]
    questions: tuple
    time_limit_minutes: int = TRIAL_EXAM_TIME_LIMIT_MINUTES

    @property
    def total_questions(self) -> int:
        return len(self.questions)


EXAM_SCENARIOS: Dict[str, ExamScenario] = {
    "A": ExamScenario(
        id="A",
        label="Scenario A (44 marks)",
        total_marks=44,
        distribution={5: 3, 4: 2, 3: 2, 2: 5, 1: 5},
        description="Lower complexity exam with more 1-2 mark questions",
    ),
    "B": ExamScenario(
        id="B",
        label="Scenario B (46 marks)",
        total_marks=46,
        distribution={5: 3, 4: 3, 3: 2, 2: 4, 1: 5},
        description="Balanced exam with typical mark distribution",
    ),
    "C": ExamScenario(
        id="C",
        label="Scenario C (51 marks)",
        total_marks=51,
        distribution={5: 3, 4: 3, 3: 4, 2: 5, 1: 2},
        description="Higher complexity exam with more 3-4 mark questions",
    ),
}


def validate_scenario(scenario: ExamScenario) -> bool:
    """17 questions whose marks add up to the scenario total."""
    question_count = sum(scenario.distribution.values())
    marks = sum(mark * count for mark, count in scenario.distribution.items())
    return question_count == TRIAL_EXAM_QUESTION_COUNT and marks == scenario.total_marks


for _scenario in EXAM_SCENARIOS.values():
    if not validate_scenario(_scenario):
        logger.error("Invalid exam scenario %s: %s", _scenario.id, _scenario)


def group_questions_by_marks(questions: Iterable[Question]) -> Dict[int, List[Question]]:
    grouped: Dict[int, List[Question]] = {mark: [] for mark in MARK_VALUES}
    for question in questions:
        grouped[question.marks].append(question)
    return grouped


def check_question_availability(questions: Sequence[Question], scenario: ExamScenario) -> List[str]:
    """Shortfall messages per mark value; empty when the scenario can be filled."""
    grouped = group_questions_by_marks(questions)
    missing = []
    for mark, needed in scenario.distribution.items():
        available = len(grouped[mark])
        if available < needed:
            missing.append(f"{needed - available} more {mark}-mark questions (have {available}, need {needed})")
    return missing


def _filter_topics(
    questions: Sequence[Question],
    topic_include: Optional[Iterable[str]],
    topic_exclude: Optional[Iterable[str]],
) -> List[Question]:
    include = set(topic_include or ())
    exclude = set(topic_exclude or ())
    return [
        q for q in questions
        if (not include or q.category in include) and q.category not in exclude
    ]


def _shuffle_options(question: Question, rng: random.Random) -> Question:
    """Shuffle multiple-choice options and point the key at the correct option's new index."""
    if not question.options or question.key.correct_option_index is None:
        return question
    order = list(range(len(question.options)))
    rng.shuffle(order)
    options = tuple(question.options[i] for i in order)
    key = replace(question.key, correct_option_index=order.index(question.key.correct_option_index))
    return replace(question, options=options, key=key)


def generate_trial_exam(
    questions: Sequence[Question],
    scenario: str,
    seed: int,
    topic_include: Optional[Iterable[str]] = None,
    topic_exclude: Optional[Iterable[str]] = None,
) -> TrialExam:
    """
    Generate a trial exam.

    Args:
        questions: Question bank
        scenario: "A", "B" or "C"
        seed: RNG seed; same seed + same bank gives the same exam
        topic_include: Only these categories (None = all)
        topic_exclude: Never these categories

    Raises:
        KeyError: unknown scenario
        InsufficientQuestionsError: not enough questions for some mark value
    """
    config = EXAM_SCENARIOS[scenario]
    pool = _filter_topics(questions, topic_include, topic_exclude)
    logger.info("Scenario %s: %d of %d questions after topic filters", scenario, len(pool), len(questions))

    missing = check_question_availability(pool, config)
    if missing:
        raise InsufficientQuestionsError(f"Insufficient questions for Scenario {scenario}: {', '.join(missing)}")

    rng = random.Random(seed)
    grouped = group_questions_by_marks(pool)
    selected: List[Question] = []
    for mark in sorted(config.distribution, reverse=True):
        for question in rng.sample(grouped[mark], config.distribution[mark]):
            selected.append(_shuffle_options(question, rng))
    rng.shuffle(selected)

    exam = TrialExam(
        id=f"exam-{scenario}-{seed}",
        scenario=scenario,
        seed=seed,
        total_marks=config.total_marks,
        distribution=dict(config.distribution),
        questions=tuple(selected),
    )
    logger.info("Generated %s: %d questions, %d marks", exam.id, exam.total_questions, exam.total_marks)
    return exam


def calculate_exam_stats(questions: Sequence[Question]) -> dict:
    """Question count, mark distribution and category distribution of a question list."""
    return {
        "total_questions": len(questions),
        "mark_distribution": {mark: sum(1 for q in questions if q.marks == mark) for mark in MARK_VALUES},
        "category_distribution": dict(Counter(q.category for q in questions)),
    }


def generate_random_seed() -> int:
    return random.randrange(1_000_000_000)
