"""
Tests for the IPA aggregation engine.
"""
import math
from unittest.mock import patch

import pytest
from sqlalchemy import select

from app.core import ipa_aggregation
from app.core.ipa_aggregation import AggregateResult, aggregate, average_scores
from app.core.template_store import QuestionTypeResolver
from app.models import (
    ClosedQuestion,
    QuestionKind,
    Template,
    Test,
    TestResponse,
)


async def _add_response(db, test_id, user_id, closed_answers):
    response = TestResponse(
        test_id=test_id, user_id=user_id, closed_answers=closed_answers
    )
    db.add(response)
    await db.commit()
    return response


def _question_ids(template):
    q1, q2 = template.closed_questions
    return q1.id, q2.id


class TestAverageScores:
    """Tests for the in-memory averaging function."""

    KINDS = {1: QuestionKind.IMPORTANCE, 2: QuestionKind.PERFORMANCE}

    def test_means_per_kind(self):
        answers = [
            {"question_id": 1, "value": 4},
            {"question_id": 2, "value": 2},
            {"question_id": 1, "value": 5},
        ]

        result = average_scores(answers, self.KINDS.get)

        assert result == AggregateResult(avg_importance=4.5, avg_performance=2.0)

    def test_no_answers_gives_empty_result(self):
        result = average_scores([], self.KINDS.get)

        assert result.avg_importance is None
        assert result.avg_performance is None
        assert result.is_empty

    def test_one_side_only(self):
        result = average_scores([{"question_id": 2, "value": 3}], self.KINDS.get)

        assert result.avg_importance is None
        assert result.avg_performance == 3.0
        assert not result.is_empty

    def test_no_rounding(self):
        answers = [
            {"question_id": 1, "value": 1},
            {"question_id": 1, "value": 2},
            {"question_id": 1, "value": 2},
        ]

        result = average_scores(answers, self.KINDS.get)

        assert result.avg_importance == pytest.approx(5 / 3)
        assert result.avg_importance != round(5 / 3, 2)

    @pytest.mark.parametrize(
        "entry",
        [
            {"question_id": None, "value": 5},
            {"value": 5},
            {"question_id": 1, "value": "abc"},
            {"question_id": 1, "value": "5"},
            {"question_id": 1, "value": None},
            {"question_id": 1, "value": True},
            {"question_id": 1, "value": math.nan},
            {"question_id": 1},
            {"question_id": "1", "value": 5},
            "not an object",
            None,
        ],
    )
    def test_malformed_entries_are_skipped(self, entry):
        answers = [{"question_id": 1, "value": 3}, entry]

        result = average_scores(answers, self.KINDS.get)

        assert result.avg_importance == 3.0
        assert result.avg_performance is None

    def test_unknown_question_is_skipped(self):
        answers = [
            {"question_id": 1, "value": 4},
            {"question_id": 999, "value": 1},
        ]

        result = average_scores(answers, self.KINDS.get)

        assert result.avg_importance == 4.0
        assert result.avg_performance is None

    def test_accepts_string_kinds(self):
        kinds = {1: "importance", 2: "performance"}
        answers = [{"question_id": 1, "value": 2}, {"question_id": 2, "value": 4}]

        result = average_scores(answers, kinds.get)

        assert result == AggregateResult(avg_importance=2.0, avg_performance=4.0)


class TestAggregate:
    """Tests for aggregate() against the database."""

    async def test_scenario_two_responses(
        self, async_db_session, ipa_test, ipa_template, student, other_student
    ):
        """Q1 importance, Q2 performance; R1={Q1:4,Q2:2}, R2={Q1:5}."""
        q1, q2 = _question_ids(ipa_template)
        await _add_response(
            async_db_session,
            ipa_test.id,
            student.id,
            [{"question_id": q1, "value": 4}, {"question_id": q2, "value": 2}],
        )
        await _add_response(
            async_db_session,
            ipa_test.id,
            other_student.id,
            [{"question_id": q1, "value": 5}],
        )

        result = await aggregate(async_db_session, ipa_test.id)

        assert result.avg_importance == 4.5
        assert result.avg_performance == 2.0

    async def test_malformed_entries_in_stored_rows(
        self, async_db_session, ipa_test, ipa_template, student
    ):
        """Entries without a question id or with a non-numeric value are ignored."""
        q1, q2 = _question_ids(ipa_template)
        await _add_response(
            async_db_session,
            ipa_test.id,
            student.id,
            [
                {"question_id": None, "value": 5},
                {"question_id": q1, "value": "abc"},
                {"question_id": q1, "value": 2},
                {"question_id": q2, "value": 4},
            ],
        )

        result = await aggregate(async_db_session, ipa_test.id)

        assert result.avg_importance == 2.0
        assert result.avg_performance == 4.0

    async def test_zero_responses(self, async_db_session, ipa_test):
        result = await aggregate(async_db_session, ipa_test.id)

        assert result == AggregateResult(None, None)
        assert result.is_empty

    async def test_missing_test_gives_empty_result(self, async_db_session):
        result = await aggregate(async_db_session, 424242)

        assert result.is_empty

    async def test_orphan_question_ids_are_ignored(
        self, async_db_session, ipa_test, ipa_template, student
    ):
        q1, _ = _question_ids(ipa_template)
        await _add_response(
            async_db_session,
            ipa_test.id,
            student.id,
            [{"question_id": q1, "value": 3}, {"question_id": 99999, "value": 1}],
        )

        result = await aggregate(async_db_session, ipa_test.id)

        assert result.avg_importance == 3.0
        assert result.avg_performance is None

    async def test_only_orphans_gives_empty_result(
        self, async_db_session, ipa_test, student
    ):
        await _add_response(
            async_db_session,
            ipa_test.id,
            student.id,
            [{"question_id": 99999, "value": 4}],
        )

        result = await aggregate(async_db_session, ipa_test.id)

        assert result.is_empty

    async def test_non_list_answers_are_skipped(
        self, async_db_session, ipa_test, ipa_template, student, other_student
    ):
        q1, _ = _question_ids(ipa_template)
        await _add_response(
            async_db_session, ipa_test.id, student.id, {"question_id": q1, "value": 1}
        )
        await _add_response(
            async_db_session,
            ipa_test.id,
            other_student.id,
            [{"question_id": q1, "value": 5}],
        )

        result = await aggregate(async_db_session, ipa_test.id)

        assert result.avg_importance == 5.0

    async def test_only_counts_the_requested_test(
        self, async_db_session, ipa_test, ipa_template, student, admin_user
    ):
        q1, _ = _question_ids(ipa_template)
        other_test = Test(
            name="Other",
            template_id=ipa_template.id,
            created_by=admin_user.id,
            starts_at=ipa_test.starts_at,
            ends_at=ipa_test.ends_at,
        )
        async_db_session.add(other_test)
        await async_db_session.commit()

        await _add_response(
            async_db_session, ipa_test.id, student.id, [{"question_id": q1, "value": 2}]
        )
        await _add_response(
            async_db_session,
            other_test.id,
            student.id,
            [{"question_id": q1, "value": 5}],
        )

        result = await aggregate(async_db_session, ipa_test.id)

        assert result.avg_importance == 2.0

    async def test_idempotent_without_new_submissions(
        self, async_db_session, ipa_test, ipa_template, student
    ):
        q1, q2 = _question_ids(ipa_template)
        await _add_response(
            async_db_session,
            ipa_test.id,
            student.id,
            [{"question_id": q1, "value": 3}, {"question_id": q2, "value": 5}],
        )

        first = await aggregate(async_db_session, ipa_test.id)
        second = await aggregate(async_db_session, ipa_test.id)

        assert first == second

    async def test_question_lookups_are_memoized(
        self, async_db_session, ipa_test, ipa_template, student, other_student
    ):
        """Repeated question ids are resolved once per aggregation."""
        q1, q2 = _question_ids(ipa_template)
        for user in (student, other_student):
            await _add_response(
                async_db_session,
                ipa_test.id,
                user.id,
                [{"question_id": q1, "value": 4}, {"question_id": q2, "value": 4}],
            )

        resolver = QuestionTypeResolver(async_db_session)
        await aggregate(async_db_session, ipa_test.id, resolver=resolver)

        assert resolver.lookups == 1

    async def test_type_is_resolved_at_read_time(
        self, async_db_session, ipa_test, ipa_template, student
    ):
        """Changing a question's type changes historical results."""
        q1, q2 = _question_ids(ipa_template)
        await _add_response(
            async_db_session,
            ipa_test.id,
            student.id,
            [{"question_id": q1, "value": 4}, {"question_id": q2, "value": 2}],
        )
        before = await aggregate(async_db_session, ipa_test.id)

        question = (
            await async_db_session.execute(
                select(ClosedQuestion).where(ClosedQuestion.id == q2)
            )
        ).scalar_one()
        question.kind = QuestionKind.IMPORTANCE
        await async_db_session.commit()

        after = await aggregate(async_db_session, ipa_test.id)

        assert before == AggregateResult(avg_importance=4.0, avg_performance=2.0)
        assert after == AggregateResult(avg_importance=3.0, avg_performance=None)

    async def test_questions_from_other_templates_are_resolved(
        self, async_db_session, ipa_test, student, admin_user
    ):
        """Ids are looked up across all templates, not only the test's own."""
        foreign = Template(
            name="Foreign",
            created_by=admin_user.id,
            closed_questions=[
                ClosedQuestion(position=0, text="Q", kind=QuestionKind.PERFORMANCE)
            ],
        )
        async_db_session.add(foreign)
        await async_db_session.commit()
        await async_db_session.refresh(foreign)

        await _add_response(
            async_db_session,
            ipa_test.id,
            student.id,
            [{"question_id": foreign.closed_questions[0].id, "value": 1}],
        )

        result = await aggregate(async_db_session, ipa_test.id)

        assert result == AggregateResult(avg_importance=None, avg_performance=1.0)

    async def test_logs_skipped_entries_at_debug(
        self, async_db_session, ipa_test, student
    ):
        await _add_response(
            async_db_session,
            ipa_test.id,
            student.id,
            [{"question_id": None, "value": 3}],
        )

        with patch.object(ipa_aggregation.logger, "debug") as mock_debug:
            await aggregate(async_db_session, ipa_test.id)

        messages = [call.args[0] for call in mock_debug.call_args_list]
        assert any("without question_id" in m for m in messages)
