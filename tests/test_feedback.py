"""
Test: AI feedback generation: prompt content, response parsing, error kinds.
"""
import anthropic
import httpx
import pytest

from conftest import FakeAnthropicClient, feedback_json
from rubric_assessor.config.models import FeedbackSettings
from rubric_assessor.grading.feedback import (
    FeedbackGenerationError,
    FeedbackGenerator,
    FeedbackRequest,
    MissingAPIKeyError,
    build_prompt,
    describe_scores,
    extract_json_from_response,
)
from rubric_assessor.rubrics.models import Criterion, Level


@pytest.fixture
def criteria():
    return [
        Criterion(
            id="crit_2",
            label="Grammar",
            levels=[Level(1, "Needs Work (1)", "poor"), Level(2, "Developing (2)", "ok")],
        ),
        Criterion(id="crit_4", label="Fluency", levels=[Level(1, "Low (1)", "halting")]),
    ]


@pytest.fixture
def request_(criteria):
    return FeedbackRequest(student_name="Ana", task="Interview", scores={"crit_2": 2}, criteria=criteria)


class TestPrompt:
    def test_describes_selected_levels(self, criteria):
        text = describe_scores(criteria, {"crit_2": 2, "crit_4": 0})
        assert text == "- Grammar: Level 2 (Developing (2)) - Context: ok"

    def test_unknown_level_falls_back(self, criteria):
        text = describe_scores(criteria, {"crit_4": 3})
        assert text == "- Fluency: Level 3 (3) - Context: Unknown"

    def test_blank_names_get_defaults(self, criteria):
        prompt = build_prompt(FeedbackRequest(student_name=" ", task="", scores={"crit_2": 1}, criteria=criteria))
        assert 'student named "Student"' in prompt
        assert 'the task: "Assignment"' in prompt
        assert "Additional Teacher Notes: None" in prompt

    def test_notes_and_reflection(self, criteria):
        prompt = build_prompt(
            FeedbackRequest(
                student_name="Ana",
                task="Interview",
                scores={"crit_2": 1},
                criteria=criteria,
                notes="Spoke too fast.",
                reflection="I felt confident.",
            )
        )
        assert "Additional Teacher Notes: Spoke too fast." in prompt
        assert '"I felt confident."' in prompt
        assert "self-reflection" in prompt

    def test_no_reflection_block_without_reflection(self, request_):
        assert "Self-Assessment" not in build_prompt(request_)


class TestExtractJson:
    def test_plain(self):
        assert extract_json_from_response('{"a": 1}') == {"a": 1}

    def test_fenced(self):
        assert extract_json_from_response('Here you go:\n```json\n{"a": 1}\n```') == {"a": 1}

    def test_embedded_in_prose(self):
        assert extract_json_from_response('Sure! {"a": 1} Hope it helps.') == {"a": 1}

    def test_no_json(self):
        with pytest.raises(ValueError):
            extract_json_from_response("I cannot help with that.")

    def test_array_is_not_an_object(self):
        with pytest.raises(ValueError):
            extract_json_from_response("[1, 2]")


class TestGenerate:
    def test_list_points_are_joined(self, make_generator, request_):
        generator, client = make_generator(
            feedback_json("Great job, Ana.", ["Clear voice", "Good pacing"], ["Vary vocabulary", "Slow down"])
        )
        result = generator.generate(request_)

        assert result.feedback == "Great job, Ana."
        assert result.strengths == "Clear voice\nGood pacing"
        assert result.improvements == "Vary vocabulary\nSlow down"

    def test_text_points_are_kept(self, make_generator, request_):
        generator, _ = make_generator(feedback_json(strengths="- Clear voice\n- Good pacing", improvements="- Slow down"))
        result = generator.generate(request_)
        assert result.strengths == "- Clear voice\n- Good pacing"
        assert result.improvements == "- Slow down"

    def test_request_uses_settings(self, make_generator, request_):
        generator, client = make_generator(feedback_json())
        generator.generate(request_)

        call = client.messages.calls[0]
        assert call["model"] == "test-model"
        assert call["max_tokens"] == 1024
        assert "Grammar: Level 2" in call["messages"][0]["content"]

    def test_repairs_bad_json_once(self, make_generator, request_):
        generator, client = make_generator("not json at all", feedback_json("Fixed."))
        result = generator.generate(request_)

        assert result.feedback == "Fixed."
        assert len(client.messages.calls) == 2
        assert "not json at all" in client.messages.calls[1]["messages"][0]["content"]

    def test_missing_keys_trigger_repair(self, make_generator, request_):
        generator, client = make_generator('{"feedback": "only this"}', feedback_json("Complete."))
        assert generator.generate(request_).feedback == "Complete."
        assert len(client.messages.calls) == 2

    def test_unparseable_after_retry(self, make_generator, request_):
        generator, _ = make_generator("nope", "still nope")
        with pytest.raises(FeedbackGenerationError):
            generator.generate(request_)

    def test_api_error(self, make_generator, request_):
        error = anthropic.APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))
        generator, _ = make_generator(error)
        with pytest.raises(FeedbackGenerationError):
            generator.generate(request_)


class TestCredentials:
    def test_missing_key(self, monkeypatch, request_):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        generator = FeedbackGenerator(FeedbackSettings())
        with pytest.raises(MissingAPIKeyError):
            generator.generate(request_)

    def test_missing_key_is_distinct_from_generation_error(self):
        assert not issubclass(MissingAPIKeyError, FeedbackGenerationError)
        assert not issubclass(FeedbackGenerationError, MissingAPIKeyError)

    def test_key_from_custom_env_var(self, monkeypatch):
        monkeypatch.setenv("MY_FEEDBACK_KEY", "sk-test")
        generator = FeedbackGenerator(FeedbackSettings(api_key_env="MY_FEEDBACK_KEY"))
        assert generator.api_key == "sk-test"
        assert isinstance(generator.client, anthropic.Anthropic)

    def test_key_from_settings(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        generator = FeedbackGenerator(FeedbackSettings(api_key="sk-config"))
        assert generator.api_key == "sk-config"

    def test_injected_client_needs_no_key(self, monkeypatch, request_):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        generator = FeedbackGenerator(FeedbackSettings(), client=FakeAnthropicClient(feedback_json()))
        assert generator.generate(request_).feedback == "Well done."
