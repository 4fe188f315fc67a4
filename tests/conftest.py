"""
Shared test fixtures for the rubric assessor.
Zero network calls: the Anthropic client is replaced by a scripted fake.
"""
import json
from types import SimpleNamespace

import pytest

from rubric_assessor.assessment.session import AssessmentSession
from rubric_assessor.config.models import FeedbackSettings
from rubric_assessor.grading.feedback import FeedbackGenerator
from rubric_assessor.rubrics.defaults import load_default_workbook
from rubric_assessor.rubrics.models import Sheet
from rubric_assessor.storage.store import AssessmentStore, MemoryStore


class FakeMessages:
    """Stands in for ``client.messages``; replays scripted answers in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=reply)])


class FakeAnthropicClient:
    def __init__(self, *replies):
        self.messages = FakeMessages(replies)


def feedback_json(feedback="Well done.", strengths=None, improvements=None):
    return json.dumps({
        "feedback": feedback,
        "strengths": strengths if strengths is not None else ["Clear voice", "Good pacing"],
        "improvements": improvements if improvements is not None else ["Vary vocabulary"],
    })


@pytest.fixture
def workbook():
    return load_default_workbook()


@pytest.fixture
def speaking_sheet(workbook):
    return workbook.sheets[0]


@pytest.fixture
def simple_sheet():
    return Sheet(
        name="Simple",
        rows=[
            ["Essay Rubric", "", "", ""],
            ["Criteria", "Needs Work (1)", "Developing (2)", "Exceeds (3)"],
            ["Grammar", "poor", "ok", "great"],
            ["", "", "", ""],
            ["Structure", "none", "some", "clear"],
            ["TOTAL SCORE", "", "", ""],
        ],
    )


@pytest.fixture
def store():
    return AssessmentStore(MemoryStore())


@pytest.fixture
def make_generator():
    """Build a generator around a fake client answering with ``replies``."""

    def _make(*replies):
        client = FakeAnthropicClient(*replies)
        generator = FeedbackGenerator(FeedbackSettings(model="test-model"), client=client)
        return generator, client

    return _make


@pytest.fixture
def session(store, simple_sheet):
    clock_value = [1_700_000_000.0]

    def clock():
        return clock_value[0]

    s = AssessmentSession(store, clock=clock)
    s.load_sheet(simple_sheet)
    return s
