"""
AI narrative feedback for a scored assessment.

Builds a prompt from the selected rubric levels, sends it to the Anthropic
Messages API and turns the JSON answer into three text blocks: overall
feedback, strengths and improvements.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import anthropic

from ..config.models import FeedbackSettings
from ..rubrics.models import Criterion
from ..utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_KEYS = ("feedback", "strengths", "improvements")

OUTPUT_SCHEMA = """{
  "feedback": "string - one cohesive paragraph addressed to the student (2nd person)",
  "strengths": ["string - 2 or 3 key strengths"],
  "improvements": ["string - 2 or 3 specific, actionable next steps"]
}"""


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------


class FeedbackError(Exception):
    """Base exception for feedback generation errors."""


class MissingAPIKeyError(FeedbackError):
    """No API key is configured for the feedback service."""


class FeedbackGenerationError(FeedbackError):
    """The remote call failed or its answer could not be understood."""


# -----------------------------------------------------------------------------
# Request / result
# -----------------------------------------------------------------------------


@dataclass
class FeedbackRequest:
    """Everything the model is told about one assessment."""

    student_name: str
    task: str
    scores: Mapping[str, int]
    criteria: Sequence[Criterion]
    notes: str | None = None
    reflection: str | None = None


@dataclass
class GeneratedFeedback:
    """Narrative feedback returned by the model."""

    feedback: str
    strengths: str
    improvements: str


# -----------------------------------------------------------------------------
# Prompt and response handling
# -----------------------------------------------------------------------------


def describe_scores(criteria: Sequence[Criterion], scores: Mapping[str, int]) -> str:
    """One line per scored criterion, naming the selected level."""
    lines = []
    for criterion in criteria:
        score = scores.get(criterion.id)
        if not score:
            continue
        level = criterion.get_level_by_score(score)
        level_label = level.label if level else str(score)
        description = level.description if level else "Unknown"
        lines.append(f"- {criterion.label}: Level {score} ({level_label}) - Context: {description}")
    return "\n".join(lines)


def build_prompt(request: FeedbackRequest) -> str:
    """Build the full feedback prompt.

    Args:
        request: The assessment to write feedback for

    Returns:
        Prompt text
    """
    student = request.student_name.strip() or "Student"
    task = request.task.strip() or "Assignment"

    parts = [
        "You are an expert educational assistant.",
        f'Write constructive, encouraging, and specific feedback for a student named "{student}" '
        f'who completed the task: "{task}".',
        "",
        "Here is the rubric assessment data:",
        describe_scores(request.criteria, request.scores),
        "",
    ]

    if request.reflection and request.reflection.strip():
        parts.append(f'Student\'s Own Self-Assessment/Reflection:\n"{request.reflection.strip()}"')
        parts.append("Please acknowledge their self-reflection in your feedback if relevant.")
        parts.append("")

    notes = (request.notes or "").strip() or "None"
    parts.append(f"Additional Teacher Notes: {notes}")
    parts.append("")
    parts.append("Respond with ONLY a JSON object with exactly this structure:")
    parts.append(OUTPUT_SCHEMA)
    parts.append("Do not wrap the JSON in markdown code fences and do not add text before or after it.")

    return "\n".join(parts)


def _build_json_fix_prompt(malformed: str, error_message: str) -> str:
    """Ask the model to repair an answer that did not parse."""
    return f"""The following answer was supposed to be a JSON object but could not be used:

```
{malformed[:2000]}
```

Error: {error_message}

Rewrite it as valid JSON following exactly this schema:

{OUTPUT_SCHEMA}

Return ONLY the corrected JSON, with no explanations and no code fences.
"""


def extract_json_from_response(raw_text: str) -> dict[str, Any]:
    """Extract a JSON object from a model answer.

    Tries the whole text, then fenced code blocks, then the outermost
    ``{...}`` span.

    Args:
        raw_text: Raw answer text

    Returns:
        Parsed JSON object

    Raises:
        ValueError: If no JSON object can be extracted
    """
    text = raw_text.strip()
    candidates = [text]
    candidates.extend(match.strip() for match in re.findall(r"```(?:json)?\s*([\s\S]*?)```", text))
    candidates.extend(re.findall(r"\{[\s\S]*\}", text))

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    raise ValueError(f"Could not extract a JSON object from the response: {text[:200]!r}")


def _as_text(value: Any) -> str:
    """Normalise a list of points into newline-joined text."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "\n".join(str(item).strip() for item in value if str(item).strip())
    return str(value).strip()


def parse_feedback(data: dict[str, Any]) -> GeneratedFeedback:
    """Validate the model's JSON and convert it to GeneratedFeedback.

    Raises:
        ValueError: If a required key is missing
    """
    missing = [key for key in REQUIRED_KEYS if key not in data]
    if missing:
        raise ValueError(f"Response JSON is missing keys: {missing}. Present: {list(data.keys())}")

    return GeneratedFeedback(
        feedback=_as_text(data["feedback"]),
        strengths=_as_text(data["strengths"]),
        improvements=_as_text(data["improvements"]),
    )


# -----------------------------------------------------------------------------
# Generator
# -----------------------------------------------------------------------------


class FeedbackGenerator:
    """Generates narrative feedback through the Anthropic Messages API."""

    def __init__(self, settings: FeedbackSettings | None = None, client: Any = None):
        """Initialize the feedback generator.

        Args:
            settings: Model and credential settings
            client: Pre-built Anthropic client. Created on first use when omitted.
        """
        self.settings = settings or FeedbackSettings()
        self._client = client

    @property
    def api_key(self) -> str | None:
        return self.settings.api_key or os.getenv(self.settings.api_key_env) or None

    @property
    def client(self) -> Any:
        """Get or create the Anthropic client."""
        if self._client is None:
            api_key = self.api_key
            if not api_key:
                raise MissingAPIKeyError(
                    f"API key is missing. Set {self.settings.api_key_env} or feedback.api_key in the config."
                )
            self._client = anthropic.Anthropic(api_key=api_key)
        return self._client

    def generate(self, request: FeedbackRequest) -> GeneratedFeedback:
        """Generate feedback for one assessment.

        Args:
            request: Student, task, scores, criteria and optional notes/reflection

        Returns:
            GeneratedFeedback with strengths/improvements as newline-joined text

        Raises:
            MissingAPIKeyError: If no API key is configured
            FeedbackGenerationError: If the call fails or the answer cannot be parsed
        """
        client = self.client
        prompt = build_prompt(request)
        logger.info(f"Requesting feedback from {self.settings.model} for '{request.student_name or 'Student'}'")
        logger.debug(f"Prompt built ({len(prompt)} characters)")

        raw_text = self._call(client, prompt)
        try:
            return parse_feedback(extract_json_from_response(raw_text))
        except ValueError as exc:
            first_error = str(exc)
            logger.warning(f"Could not parse feedback response: {exc}. Asking the model to fix its JSON...")

        fixed_text = self._call(client, _build_json_fix_prompt(raw_text, first_error))
        try:
            result = parse_feedback(extract_json_from_response(fixed_text))
        except ValueError as exc:
            logger.error(f"Feedback response still unusable after retry: {exc}")
            raise FeedbackGenerationError(
                "Failed to generate feedback. Please try again."
            ) from exc

        logger.info("Feedback JSON repaired on retry")
        return result

    def _call(self, client: Any, prompt: str) -> str:
        """Send one prompt and return the concatenated text blocks."""
        try:
            response = client.messages.create(
                model=self.settings.model,
                max_tokens=self.settings.max_tokens,
                temperature=self.settings.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as exc:
            logger.error(f"Feedback request failed: {exc}")
            raise FeedbackGenerationError("Failed to generate feedback. Please try again.") from exc

        text_parts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        return "".join(text_parts).strip()
