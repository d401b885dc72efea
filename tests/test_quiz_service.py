"""Quiz lifecycle tests over the in-memory collaborators.

Covers start → current question → submit-and-advance → results, ownership
isolation and concurrent submissions.
"""

import random
import threading
import uuid
from decimal import Decimal

import pytest

from ordering_quiz.core.errors import (
    AlreadyCompleted,
    EmptyTopic,
    NotFound,
    SubmissionConflict,
    ValidationError,
)
from ordering_quiz.services.quiz_service import QuizService, shuffle_items

OWNER = "student-a"
OTHER = "student-b"


def _topic(content, *item_lists):
    topic = content.add_topic("Planets", chapter_name="Space")
    questions = [
        content.add_question(topic.id, f"Q{n}", texts, explanation=f"Because {n}")
        for n, texts in enumerate(item_lists, start=1)
    ]
    return topic, questions


def _correct_order(content, question_id):
    return [i.id for i in sorted(content.get_question_items(question_id), key=lambda i: i.correct_position)]


# ── start ─────────────────────────────────────────────────────────────────────


def test_start_creates_session(service, content):
    topic, _ = _topic(content, ["A", "B"], ["C", "D"])
    started = service.start(topic.id, OWNER, nickname="Ada")

    assert started.topic == topic
    assert started.session.total_questions == 2
    assert started.session.current_question_index == 0
    assert started.session.nickname == "Ada"


def test_each_start_is_independent(service, content):
    topic, _ = _topic(content, ["A", "B"])
    first = service.start(topic.id, OWNER)
    second = service.start(topic.id, OWNER)
    assert first.session.id != second.session.id


def test_start_unknown_topic(service):
    with pytest.raises(NotFound):
        service.start(uuid.uuid4(), OWNER)


def test_start_empty_topic(service, content):
    topic = content.add_topic("Empty")
    with pytest.raises(EmptyTopic):
        service.start(topic.id, OWNER)


def test_question_order_is_snapshotted(service, content):
    topic, questions = _topic(content, ["A", "B"])
    started = service.start(topic.id, OWNER)
    content.add_question(topic.id, "Late addition", ["X", "Y"])

    assert service.current_question(started.session.id, OWNER).session.total_questions == 1
    assert started.session.question_ids == (questions[0].id,)


# ── current question ──────────────────────────────────────────────────────────


def test_current_question_hides_correct_positions(service, content):
    topic, questions = _topic(content, ["A", "B", "C"])
    session_id = service.start(topic.id, OWNER).session.id

    current = service.current_question(session_id, OWNER)
    assert current.question.id == questions[0].id
    assert sorted(i.text for i in current.items) == ["A", "B", "C"]
    assert not any(hasattr(i, "correct_position") for i in current.items)


def test_current_question_is_idempotent(service, content):
    topic, _ = _topic(content, [str(n) for n in range(8)])
    session_id = service.start(topic.id, OWNER).session.id

    first = service.current_question(session_id, OWNER)
    second = service.current_question(session_id, OWNER)
    assert first.items == second.items
    assert first.session == second.session


def test_rng_factory_is_injectable(content, store):
    topic, _ = _topic(content, ["A", "B", "C", "D"])
    service = QuizService(content, store, rng_factory=lambda session: random.Random(7))
    session_id = service.start(topic.id, OWNER).session.id

    expected = shuffle_items(content.get_question_items(content.topic_questions[topic.id][0]), random.Random(7))
    assert service.current_question(session_id, OWNER).items == expected


def test_current_question_after_completion(service, content):
    topic, questions = _topic(content, ["A", "B"])
    session_id = service.start(topic.id, OWNER).session.id
    service.submit_and_advance(session_id, OWNER, _correct_order(content, questions[0].id))

    current = service.current_question(session_id, OWNER)
    assert current.is_completed
    assert current.question is None
    assert current.items == ()


def test_removed_question_reports_not_found(service, content):
    topic, questions = _topic(content, ["A", "B"])
    session_id = service.start(topic.id, OWNER).session.id
    del content.items[questions[0].id]

    with pytest.raises(NotFound):
        service.current_question(session_id, OWNER)


# ── submit ────────────────────────────────────────────────────────────────────


def test_submit_grades_and_advances(service, content):
    topic, questions = _topic(content, ["A", "B", "C", "D"], ["E", "F"])
    session_id = service.start(topic.id, OWNER).session.id

    a, b, c, d = _correct_order(content, questions[0].id)
    outcome = service.submit_and_advance(session_id, OWNER, [b, a, c, d], time_taken=30)

    assert outcome.result.total_score == Decimal("35.00")
    assert outcome.result.percentage == Decimal("87.50")
    assert outcome.record.question_index == 0
    assert outcome.record.time_taken == 30
    assert outcome.question.title == "Q1"
    assert outcome.session.current_question_index == 1
    assert outcome.session.total_score == Decimal("35.00")
    assert not outcome.session.is_completed


def test_full_quiz_completes(service, content):
    topic, questions = _topic(content, ["A", "B", "C", "D"], ["E", "F", "G", "H"])
    session_id = service.start(topic.id, OWNER).session.id

    service.submit_and_advance(session_id, OWNER, _correct_order(content, questions[0].id))
    outcome = service.submit_and_advance(
        session_id, OWNER, list(reversed(_correct_order(content, questions[1].id)))
    )

    session = outcome.session
    assert session.is_completed
    assert session.completed_at is not None
    assert session.total_score == Decimal("60.00")
    assert session.max_possible_score == Decimal("80.00")
    assert session.percentage == Decimal("75.00")


def test_submit_after_completion_leaves_totals_unchanged(service, content, store):
    topic, questions = _topic(content, ["A", "B"])
    session_id = service.start(topic.id, OWNER).session.id
    order = _correct_order(content, questions[0].id)
    service.submit_and_advance(session_id, OWNER, order)
    before = store.load_session(session_id)

    with pytest.raises(AlreadyCompleted):
        service.submit_and_advance(session_id, OWNER, order)

    assert store.load_session(session_id) == before
    assert len(store.list_answer_records(session_id)) == 1


def test_invalid_submission_does_not_advance(service, content, store):
    topic, questions = _topic(content, ["A", "B", "C"])
    session_id = service.start(topic.id, OWNER).session.id
    order = _correct_order(content, questions[0].id)

    with pytest.raises(ValidationError):
        service.submit_and_advance(session_id, OWNER, order[:2])

    session = store.load_session(session_id)
    assert session.current_question_index == 0
    assert session.version == 0
    assert store.list_answer_records(session_id) == []


@pytest.mark.parametrize("send_index", [False, True])
def test_concurrent_submissions_commit_once(service, content, store, send_index):
    topic, questions = _topic(content, ["A", "B", "C"], ["D", "E", "F"])
    session_id = service.start(topic.id, OWNER).session.id
    order = _correct_order(content, questions[0].id)
    question_index = 0 if send_index else None

    barrier = threading.Barrier(8)
    outcomes, errors = [], []

    def submit():
        barrier.wait()
        try:
            outcomes.append(
                service.submit_and_advance(session_id, OWNER, order, question_index=question_index)
            )
        except (ValidationError, AlreadyCompleted) as e:
            errors.append(e)

    threads = [threading.Thread(target=submit) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(outcomes) == 1
    assert len(errors) == 7
    assert all(type(e) is SubmissionConflict for e in errors)
    session = store.load_session(session_id)
    assert session.current_question_index == 1
    assert session.total_score == Decimal("30.00")
    assert [r.question_index for r in store.list_answer_records(session_id)] == [0]


def test_retried_submission_conflicts(service, content, store):
    topic, questions = _topic(content, ["A", "B", "C"], ["D", "E", "F"])
    session_id = service.start(topic.id, OWNER).session.id
    order = _correct_order(content, questions[0].id)
    service.submit_and_advance(session_id, OWNER, order)
    before = store.load_session(session_id)

    with pytest.raises(SubmissionConflict) as exc:
        service.submit_and_advance(session_id, OWNER, order)
    assert exc.value.details["question_index"] == 0
    assert exc.value.details["current_question_index"] == 1

    # A reshuffled retry of the same question is still a repeat
    with pytest.raises(SubmissionConflict):
        service.submit_and_advance(session_id, OWNER, list(reversed(order)))

    assert store.load_session(session_id) == before
    assert len(store.list_answer_records(session_id)) == 1


def test_stale_question_index_conflicts(service, content, store):
    topic, questions = _topic(content, ["A", "B"], ["C", "D"], ["E", "F"])
    session_id = service.start(topic.id, OWNER).session.id
    service.submit_and_advance(session_id, OWNER, _correct_order(content, questions[0].id))
    next_order = _correct_order(content, questions[1].id)

    with pytest.raises(SubmissionConflict):
        service.submit_and_advance(session_id, OWNER, next_order, question_index=0)
    with pytest.raises(SubmissionConflict):
        service.submit_and_advance(session_id, OWNER, next_order, question_index=2)
    assert store.load_session(session_id).current_question_index == 1

    outcome = service.submit_and_advance(session_id, OWNER, next_order, question_index=1)
    assert outcome.record.question_index == 1
    assert outcome.session.current_question_index == 2


def test_mixed_ids_are_a_validation_error(service, content):
    topic, questions = _topic(content, ["A", "B"], ["C", "D"])
    session_id = service.start(topic.id, OWNER).session.id
    first = _correct_order(content, questions[0].id)
    service.submit_and_advance(session_id, OWNER, first)
    second = _correct_order(content, questions[1].id)

    with pytest.raises(ValidationError):
        service.submit_and_advance(session_id, OWNER, [first[0], second[0]])


# ── ownership ─────────────────────────────────────────────────────────────────


def test_other_owner_sees_not_found(service, content, store):
    topic, questions = _topic(content, ["A", "B"])
    session_id = service.start(topic.id, OWNER).session.id
    order = _correct_order(content, questions[0].id)

    with pytest.raises(NotFound):
        service.current_question(session_id, OTHER)
    with pytest.raises(NotFound):
        service.submit_and_advance(session_id, OTHER, order)
    with pytest.raises(NotFound):
        service.results(session_id, OTHER)

    assert store.load_session(session_id).version == 0


def test_unknown_session_not_found(service):
    with pytest.raises(NotFound):
        service.current_question(uuid.uuid4(), OWNER)
    with pytest.raises(NotFound):
        service.submit_and_advance(uuid.uuid4(), OWNER, [uuid.uuid4()])


# ── results ───────────────────────────────────────────────────────────────────


def test_partial_results(service, content):
    topic, questions = _topic(content, ["A", "B", "C", "D"], ["E", "F"], ["G", "H"])
    session_id = service.start(topic.id, OWNER).session.id
    a, b, c, d = _correct_order(content, questions[0].id)
    service.submit_and_advance(session_id, OWNER, [d, c, b, a])

    results = service.results(session_id, OWNER)
    assert not results.session.is_completed
    assert results.topic.name == "Planets"
    assert len(results.questions) == 1
    assert results.questions[0].question.explanation == "Because 1"
    assert results.session.percentage == Decimal("50.00")
    assert results.summary.tier == "keep_learning"


def test_results_before_any_answer(service, content):
    topic, _ = _topic(content, ["A", "B"])
    session_id = service.start(topic.id, OWNER).session.id

    results = service.results(session_id, OWNER)
    assert results.questions == ()
    assert results.session.percentage == Decimal("0")
    assert results.summary.tier == "practice_more"


def test_perfect_results(service, content):
    topic, questions = _topic(content, ["A", "B"], ["C", "D", "E"])
    session_id = service.start(topic.id, OWNER).session.id
    for question in questions:
        service.submit_and_advance(session_id, OWNER, _correct_order(content, question.id))

    results = service.results(session_id, OWNER)
    assert results.session.is_completed
    assert results.session.percentage == Decimal("100.00")
    assert results.summary.tier == "perfect"
    assert [q.record.question_index for q in results.questions] == [0, 1]
