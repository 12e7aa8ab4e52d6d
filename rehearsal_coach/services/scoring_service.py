"""Scoring and question-generation services backed by a chat-completion API."""

import asyncio
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
from pydantic import BaseModel, Field, ValidationError

from ..models.interview import AnswerSet, InterviewSettings, Question, ReportData
from ..utils.exceptions import AuthenticationError, ScoringError
from ..utils.logging import get_logger
from .configuration_manager import ScoringProviderConfig

_JSON_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)

NO_ANSWER = "(no answer provided)"


class ScoringService(ABC):
    """Turns questions and answers into scored feedback."""

    @abstractmethod
    async def analyze(self, questions: Sequence[Question], settings: InterviewSettings,
                      answers: AnswerSet) -> ReportData:
        """Score a completed rehearsal."""


class QuestionGenerator(ABC):
    """Produces the ordered question list for an interview configuration."""

    @abstractmethod
    async def generate_questions(self, settings: InterviewSettings, count: int = 5) -> List[Question]:
        """Generate questions for ``settings``."""


class ChatRequest(BaseModel):
    """Chat-completion request body."""

    model: str
    messages: List[Dict[str, str]]
    max_tokens: int = 2000
    temperature: float = 0.4
    response_format: Optional[Dict[str, str]] = Field(default=None)


class ChatCompletionCoach(ScoringService, QuestionGenerator):
    """OpenAI-compatible chat-completion client (DeepSeek by default)."""

    def __init__(self, config: ScoringProviderConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.provider_name = config.name
        self.logger = get_logger(f"scoring.provider.{self.provider_name}")
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "ChatCompletionCoach":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cleanup()

    async def cleanup(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def analyze(self, questions: Sequence[Question], settings: InterviewSettings,
                      answers: AnswerSet) -> ReportData:
        prompt = build_analysis_prompt(questions, settings, answers)
        content = await self._complete(prompt, temperature=self.config.temperature)
        payload = parse_json_payload(content)
        try:
            return ReportData.model_validate(payload)
        except ValidationError as e:
            raise ScoringError(
                f"Provider returned an invalid report: {e.error_count()} validation errors",
                provider_name=self.provider_name,
                details={"errors": e.errors(include_url=False)},
            )

    async def generate_questions(self, settings: InterviewSettings, count: int = 5) -> List[Question]:
        prompt = build_question_prompt(settings, count)
        content = await self._complete(prompt, temperature=0.8)
        payload = parse_json_payload(content)
        items = payload.get("questions", []) if isinstance(payload, dict) else payload
        try:
            questions = [Question.model_validate(item) for item in items]
        except (ValidationError, TypeError) as e:
            raise ScoringError(f"Provider returned invalid questions: {e}", provider_name=self.provider_name)
        if not questions:
            raise ScoringError("Provider returned no questions", provider_name=self.provider_name)
        return questions

    # =========================================================================
    # HTTP
    # =========================================================================

    async def _complete(self, prompt: str, temperature: float) -> str:
        request = ChatRequest(
            model=self.config.model,
            messages=[
                {"role": "system", "content": "You are an experienced interview coach. Reply with JSON only."},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.config.max_tokens,
            temperature=temperature,
            response_format={"type": "json_object"},
        )
        response = await self._make_request_with_retries(request)
        try:
            return response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise ScoringError("Provider response has no message content", provider_name=self.provider_name)

    async def _make_request_with_retries(self, request: ChatRequest) -> Dict[str, Any]:
        """Make request with exponential backoff retry logic."""
        last_exception: Optional[Exception] = None

        for attempt in range(self.config.retries + 1):
            try:
                return await self._post_chat(request)
            except AuthenticationError:
                raise
            except ScoringError as e:
                if e.status_code is not None and e.status_code < 500 and e.status_code != 429:
                    raise
                last_exception = e
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = ScoringError(f"Request to {self.provider_name} failed: {e}",
                                              provider_name=self.provider_name)

            if attempt < self.config.retries:
                wait_time = 2 ** attempt
                self.logger.warning(
                    f"{self.provider_name} request failed (attempt {attempt + 1}/{self.config.retries + 1}), "
                    f"retrying in {wait_time}s: {last_exception}"
                )
                await asyncio.sleep(wait_time)

        self.logger.error(f"{self.provider_name} request failed after {self.config.retries + 1} attempts")
        raise last_exception or ScoringError("Request failed after retries", provider_name=self.provider_name)

    async def _post_chat(self, request: ChatRequest) -> Dict[str, Any]:
        if not self.config.api_key:
            raise AuthenticationError(f"{self.provider_name} API key is required", auth_method="api_key")

        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                    "User-Agent": "RehearsalCoach/0.1.0",
                },
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            )
            self._owns_session = True

        url = f"{self.config.base_url.rstrip('/')}/chat/completions"
        async with self._session.post(url, json=request.model_dump(exclude_none=True)) as response:
            if response.status == 401:
                raise AuthenticationError(f"Invalid {self.provider_name} API key", auth_method="api_key")
            if response.status != 200:
                body = await response.text()
                raise ScoringError(
                    f"{self.provider_name} API returned status {response.status}",
                    provider_name=self.provider_name,
                    status_code=response.status,
                    details={"body": body[:500]},
                )
            return await response.json()


def parse_json_payload(content: str) -> Any:
    """Parse a JSON document out of a model reply, tolerating code fences."""
    match = _JSON_FENCE.search(content)
    text = match.group(1) if match else content
    try:
        return json.loads(text.strip())
    except json.JSONDecodeError as e:
        raise ScoringError(f"Provider reply is not valid JSON: {e.msg}", details={"preview": content[:200]})


def build_question_prompt(settings: InterviewSettings, count: int) -> str:
    return f"""Generate {count} interview questions for a mock interview.

Job role: {settings.job_role}
Experience level: {settings.experience}
Interview type: {settings.interview_type}
Difficulty: {settings.difficulty}
Planned duration: {settings.duration}

Each question must have a "type" of "Behavioral", "Technical" or "Situational",
matching the interview type where possible.

Return a JSON object of the form:
{{"questions": [{{"question": "<text>", "type": "<Behavioral|Technical|Situational>"}}]}}"""


def build_analysis_prompt(questions: Sequence[Question], settings: InterviewSettings, answers: AnswerSet) -> str:
    transcript = "\n\n".join(
        f"Q{i + 1} ({q.category.value}): {q.text}\nA{i + 1}: {answers.get(i, '').strip() or NO_ANSWER}"
        for i, q in enumerate(questions)
    )
    return f"""Evaluate this mock interview for a {settings.experience} {settings.job_role} candidate
({settings.interview_type} interview, {settings.difficulty} difficulty).

{transcript}

Score each category from 0 to 100 and return a JSON object of the form:
{{
    "overallScore": <0-100>,
    "clarityOfCommunication": {{"score": <0-100>, "feedback": "<text>"}},
    "technicalProficiency": {{"score": <0-100>, "feedback": "<text>"}},
    "behavioralCompetency": {{"score": <0-100>, "feedback": "<text>"}},
    "confidenceAndDemeanor": {{"score": <0-100>, "feedback": "<text>"}},
    "strengths": ["<strength>"],
    "areasForImprovement": ["<area>"]
}}"""
