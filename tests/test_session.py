"""
Test: assessment session: editing, feedback requests, saving and snapshots.
"""
import pytest

from conftest import feedback_json
from rubric_assessor.assessment.session import AssessmentSession, FeedbackInProgressError, ValidationError
from rubric_assessor.grading.feedback import FeedbackGenerationError, GeneratedFeedback


class TestEditing:
    def test_load_sheet_resets_state(self, session, simple_sheet):
        session.state.student_name = "Ana"
        session.set_score("crit_2", 2)
        session.current_id = "old"

        session.load_sheet(simple_sheet)

        assert session.state.student_name == ""
        assert session.state.scores == {}
        assert session.current_id is None
        assert [c.id for c in session.rubric.criteria] == ["crit_2", "crit_4"]

    def test_set_score_validates_criterion_and_level(self, session):
        with pytest.raises(ValidationError):
            session.set_score("crit_99", 1)
        with pytest.raises(ValidationError):
            session.set_score("crit_2", 4)
        assert session.state.scores == {}

    def test_clear_score(self, session):
        session.set_score("crit_2", 2)
        session.clear_score("crit_2")
        session.clear_score("crit_4")
        assert session.state.scores == {}
        assert session.totals().average == "0.0"

    def test_delete_criterion_drops_score(self, session):
        session.set_score("crit_2", 3)
        session.set_score("crit_4", 1)
        session.delete_criterion("crit_2")

        assert [c.id for c in session.rubric.criteria] == ["crit_4"]
        assert session.state.scores == {"crit_4": 1}
        assert session.totals().max_score == 3

    def test_added_criteria_have_three_levels_and_unique_ids(self, session):
        first = session.add_criterion()
        second = session.add_criterion("Pronunciation")

        assert first.id == "custom_1700000000000"
        assert second.id != first.id
        assert second.label == "Pronunciation"
        assert [l.score for l in first.levels] == [1, 2, 3]
        assert session.totals().max_score == 12

    def test_rename_and_update(self, session):
        session.rename_rubric("Essay v2")
        criterion = session.rubric.get_criterion("crit_4")
        criterion.label = "Organisation"
        session.update_criterion(criterion)

        assert session.rubric.title == "Essay v2"
        assert session.rubric.get_criterion("crit_4").label == "Organisation"

    def test_totals(self, session):
        session.set_score("crit_2", 3)
        summary = session.totals()
        assert (summary.total, summary.max_score, summary.average) == (3, 6, "3.0")


class TestFeedback:
    def test_requires_a_score(self, session, make_generator):
        session.generator, _ = make_generator(feedback_json())
        with pytest.raises(ValidationError):
            session.generate_feedback()

    def test_requires_a_generator(self, session):
        session.set_score("crit_2", 1)
        with pytest.raises(ValidationError):
            session.generate_feedback()

    def test_success_fills_state(self, session, make_generator):
        session.generator, client = make_generator(feedback_json("Nice work.", ["A", "B"], ["C"]))
        session.state.feedback = "Watch the tense."
        session.set_score("crit_2", 2)

        session.generate_feedback()

        assert session.state.feedback == "Nice work."
        assert session.state.strengths == "A\nB"
        assert session.state.improvements == "C"
        assert "Additional Teacher Notes: Watch the tense." in client.messages.calls[0]["messages"][0]["content"]
        assert session.generating is False

    def test_failure_keeps_previous_text(self, session, make_generator):
        session.generator, _ = make_generator("bad", "worse")
        session.state.feedback = "Earlier feedback"
        session.state.strengths = "Earlier strengths"
        session.set_score("crit_2", 2)

        with pytest.raises(FeedbackGenerationError):
            session.generate_feedback()

        assert session.state.feedback == "Earlier feedback"
        assert session.state.strengths == "Earlier strengths"
        assert session.generating is False

    def test_reflection_only_when_enabled(self, session, make_generator):
        session.generator, client = make_generator(feedback_json(), feedback_json())
        session.set_score("crit_2", 2)
        session.state.student_reflection = "I rushed the ending."

        session.generate_feedback()
        assert "I rushed the ending." not in client.messages.calls[0]["messages"][0]["content"]

        session.show_reflection = True
        session.generate_feedback()
        assert "I rushed the ending." in client.messages.calls[1]["messages"][0]["content"]

    def test_second_request_while_pending_is_refused(self, session):
        seen = {}

        class ReentrantGenerator:
            def generate(self, request):
                with pytest.raises(FeedbackInProgressError):
                    session.generate_feedback()
                seen["checked"] = True
                return GeneratedFeedback("ok", "s", "i")

        session.generator = ReentrantGenerator()
        session.set_score("crit_2", 1)
        session.generate_feedback()

        assert seen == {"checked": True}
        assert session.generating is False


class TestSaving:
    def test_requires_student_name(self, session, store):
        session.state.student_name = "   "
        with pytest.raises(ValidationError):
            session.save()
        assert store.list() == []

    def test_save_builds_record(self, session, store):
        session.state.student_name = "Ana"
        session.state.task = "Essay"
        session.set_score("crit_2", 3)
        session.set_score("crit_4", 2)

        record = session.save()

        assert session.current_id == record.id
        assert record.timestamp == 1_700_000_000_000
        assert (record.total_score, record.max_score, record.average_score) == (5, 6, "2.5")
        assert record.student_reflection is None
        assert store.get_by_id(record.id).rubric.title == "Essay Rubric"

    def test_second_save_updates_in_place(self, session, store):
        session.state.student_name = "Ana"
        first = session.save()
        session.set_score("crit_2", 1)
        second = session.save()

        assert second.id == first.id
        assert len(store.list()) == 1
        assert store.list()[0].scores == {"crit_2": 1}

    def test_reflection_saved_when_enabled(self, session):
        session.state.student_name = "Ana"
        session.state.student_reflection = "Hard task."
        assert session.save().student_reflection is None

        session.show_reflection = True
        assert session.save().student_reflection == "Hard task."

    def test_snapshot_is_independent_of_live_rubric(self, session, store):
        session.state.student_name = "Ana"
        session.set_score("crit_2", 2)
        record = session.save()

        session.rubric.criteria[0].label = "Renamed"
        session.rubric.criteria[0].levels[0].description = "changed"
        session.delete_criterion("crit_4")
        session.state.scores["crit_2"] = 3

        assert record.rubric.criteria[0].label == "Grammar"
        stored = store.get_by_id(record.id)
        assert [c.label for c in stored.rubric.criteria] == ["Grammar", "Structure"]
        assert stored.scores == {"crit_2": 2}

    def test_reopen_saved_record(self, session, store):
        session.state.student_name = "Ana"
        session.show_reflection = True
        session.state.student_reflection = "Proud of it."
        session.set_score("crit_2", 2)
        record = session.save()

        other = AssessmentSession(store)
        other.load_saved(store.get_by_id(record.id))
        assert other.current_id == record.id
        assert other.show_reflection is True
        assert other.state.scores == {"crit_2": 2}

        other.rubric.criteria[0].label = "Edited"
        other.state.scores["crit_2"] = 1
        assert record.rubric.criteria[0].label == "Grammar"
        assert record.scores == {"crit_2": 2}

        other.save()
        assert len(store.list()) == 1
        assert store.get_by_id(record.id).rubric.criteria[0].label == "Edited"
