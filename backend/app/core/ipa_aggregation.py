"""
IPA aggregation engine.

Averages every closed answer of a test into one importance score and one
performance score. Each answer is classified by looking up its question id
across all templates at read time, so editing a question's type changes the
results of tests that were already answered.

Stored answers are documents and may be malformed (imported rows, older
clients). Entries without a question id, with a non-numeric value, or whose
question no longer exists are skipped, never fatal.
"""

import logging
import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.response_store import get_responses_by_test
from app.core.template_store import QuestionTypeResolver
from app.models.models import QuestionKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregateResult:
    """Averaged scores; None means no classifiable answer on that side."""

    avg_importance: Optional[float] = None
    avg_performance: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        """True when neither side has data (no responses or nothing classifiable)."""
        return self.avg_importance is None and self.avg_performance is None


def _numeric_value(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _usable_entries(
    answers: Iterable[Any],
) -> List[Tuple[int, float]]:
    """Extract (question_id, value) pairs, dropping malformed entries."""
    usable: List[Tuple[int, float]] = []
    for entry in answers:
        if not isinstance(entry, Mapping):
            logger.debug(f"Skipping non-object closed answer: {entry!r}")
            continue
        question_id = entry.get("question_id")
        if question_id is None or isinstance(question_id, bool):
            logger.debug("Skipping closed answer without question_id")
            continue
        if not isinstance(question_id, int):
            logger.debug(f"Skipping closed answer with question_id {question_id!r}")
            continue
        value = _numeric_value(entry.get("value"))
        if value is None:
            logger.debug(
                f"Skipping closed answer for question {question_id} "
                f"with value {entry.get('value')!r}"
            )
            continue
        usable.append((question_id, value))
    return usable


def average_scores(
    answers: Iterable[Any],
    resolve: Callable[[int], Optional[QuestionKind]],
) -> AggregateResult:
    """
    Average a flat list of closed answers.

    Pure counterpart of aggregate() for in-memory data.

    Args:
        answers: Closed-answer entries from any number of responses
        resolve: Maps a question id to its type, or None when unknown

    Returns:
        The averaged result
    """
    return _average_pairs(_usable_entries(answers), resolve)


def _average_pairs(
    pairs: Iterable[Tuple[int, float]],
    resolve: Callable[[int], Optional[QuestionKind]],
) -> AggregateResult:
    sums = {QuestionKind.IMPORTANCE: 0.0, QuestionKind.PERFORMANCE: 0.0}
    counts = {QuestionKind.IMPORTANCE: 0, QuestionKind.PERFORMANCE: 0}

    for question_id, value in pairs:
        kind = resolve(question_id)
        if kind is None:
            logger.debug(f"Skipping closed answer for unknown question {question_id}")
            continue
        kind = QuestionKind(kind)
        sums[kind] += value
        counts[kind] += 1

    def _mean(kind: QuestionKind) -> Optional[float]:
        if counts[kind] == 0:
            return None
        return sums[kind] / counts[kind]

    return AggregateResult(
        avg_importance=_mean(QuestionKind.IMPORTANCE),
        avg_performance=_mean(QuestionKind.PERFORMANCE),
    )


async def aggregate(
    db: AsyncSession,
    test_id: int,
    resolver: Optional[QuestionTypeResolver] = None,
) -> AggregateResult:
    """
    Compute the IPA averages for one test.

    A test with no responses yields the all-None result; so does a missing
    test, since callers check existence themselves. Nothing is cached
    between calls.

    Args:
        db: Database session
        test_id: Test to aggregate
        resolver: Question type lookup, fresh per call unless supplied

    Returns:
        AggregateResult with unrounded means
    """
    resolver = resolver or QuestionTypeResolver(db)
    responses = await get_responses_by_test(db, test_id)

    answers: List[Any] = []
    for response in responses:
        if isinstance(response.closed_answers, list):
            answers.extend(response.closed_answers)
        else:
            logger.debug(f"Skipping response {response.id} with non-list answers")

    pairs = _usable_entries(answers)
    await resolver.prefetch([qid for qid, _ in pairs])
    kinds = {qid: await resolver.resolve(qid) for qid, _ in pairs}
    result = _average_pairs(pairs, kinds.get)

    logger.debug(
        f"Aggregated {len(responses)} responses: "
        f"importance={result.avg_importance} performance={result.avg_performance}",
        extra={"test_id": test_id},
    )
    return result
