"""ChatGPT engine, suggestion analyzer and summarizer."""

import json
import logging
import aiohttp
from typing import Any, Dict, List, Optional

from ..models.transcription import MeetingSummary, SuggestionResult
from .base import AbstractSuggestionAnalyzer, AbstractSummarizer, AnalyzerError

logger = logging.getLogger(__name__)

SUGGESTIONS_PROMPT = """Tu assistes une personne pendant une réunion en cours.
Voici les dernières phrases transcrites :

\"\"\"{window_text}\"\"\"

Réponds uniquement avec un objet JSON de la forme
{{"clarifications": ["question à clarifier", ...], "topics_to_explore": ["sujet à approfondir", ...]}}
avec au plus 3 éléments par liste. Utilise des listes vides si rien n'est pertinent."""

SUMMARY_PROMPT = """Voici la transcription complète d'une réunion :

\"\"\"{transcript}\"\"\"

Réponds uniquement avec un objet JSON de la forme
{{"title": "titre court", "summary": "compte-rendu structuré"}}."""


class ChatGPTEngine:
    """Simple engine for sending prompts to ChatGPT and getting responses."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini",
                 base_url: str = "https://api.openai.com/v1/chat/completions"):
        """Initialize ChatGPT engine.

        Args:
            api_key: OpenAI API key
            model: ChatGPT model to use
            base_url: Chat completions endpoint
        """
        if not api_key:
            raise ValueError("OpenAI API key is required")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url

        logger.info(f"ChatGPTEngine initialized with model: {model}")

    async def send_prompt(self, prompt: str, temperature: float = 0.3, max_tokens: int = 1000,
                          json_mode: bool = False) -> str:
        """Send a prompt to ChatGPT and get the response.

        Args:
            prompt: Prompt to send to ChatGPT
            temperature: Temperature for response generation (0.0 to 1.0)
            max_tokens: Maximum tokens in response
            json_mode: Ask the API for a JSON object response

        Returns:
            Response text from ChatGPT

        Raises:
            AnalyzerError: If the API call fails
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        data: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens
        }
        if json_mode:
            data["response_format"] = {"type": "json_object"}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.base_url, headers=headers, json=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise AnalyzerError(f"ChatGPT API error: {response.status} - {error_text}")

                    result = await response.json()
        except aiohttp.ClientError as e:
            raise AnalyzerError(f"ChatGPT request failed: {e}") from e

        try:
            return result["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError) as e:
            raise AnalyzerError(f"Unexpected ChatGPT response shape: {result!r}") from e


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse a JSON object from a model reply, tolerating markdown code fences.

    Raises:
        AnalyzerError: If no JSON object can be decoded
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]

    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end < start:
        raise AnalyzerError(f"No JSON object in response: {text[:100]!r}")

    try:
        parsed = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        raise AnalyzerError(f"Invalid JSON in response: {e}") from e

    if not isinstance(parsed, dict):
        raise AnalyzerError("Response JSON is not an object")
    return parsed


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def parse_suggestions(text: str) -> SuggestionResult:
    """Turn a model reply into a SuggestionResult.

    Accepts both snake_case and camelCase list keys.
    """
    payload = parse_json_object(text)
    clarifications = payload.get("clarifications", payload.get("questions", []))
    topics = payload.get("topics_to_explore", payload.get("topicsToExplore", payload.get("topics", [])))
    return SuggestionResult(
        clarifications=tuple(_string_list(clarifications)),
        topics_to_explore=tuple(_string_list(topics)),
    )


class ChatGPTSuggestionAnalyzer(AbstractSuggestionAnalyzer):
    """Asks ChatGPT for clarification questions and topics to explore."""

    def __init__(self, engine: ChatGPTEngine, prompt_template: str = SUGGESTIONS_PROMPT):
        self.engine = engine
        self.prompt_template = prompt_template

    async def analyze(self, window_text: str) -> SuggestionResult:
        if not window_text.strip():
            return SuggestionResult()

        reply = await self.engine.send_prompt(
            self.prompt_template.format(window_text=window_text), json_mode=True)
        result = parse_suggestions(reply)
        logger.debug(f"Analyzer returned {len(result.clarifications)} clarifications, "
                     f"{len(result.topics_to_explore)} topics")
        return result


class ChatGPTSummarizer(AbstractSummarizer):
    """Generates a meeting title and summary with ChatGPT."""

    def __init__(self, engine: ChatGPTEngine, prompt_template: str = SUMMARY_PROMPT,
                 default_title: Optional[str] = None):
        self.engine = engine
        self.prompt_template = prompt_template
        self.default_title = default_title or "Réunion"

    async def summarize(self, transcript: str) -> MeetingSummary:
        reply = await self.engine.send_prompt(
            self.prompt_template.format(transcript=transcript), max_tokens=2000, json_mode=True)
        payload = parse_json_object(reply)

        summary = payload.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            raise AnalyzerError("Summary missing from ChatGPT response")

        title = payload.get("title")
        if not isinstance(title, str) or not title.strip():
            title = self.default_title
        return MeetingSummary(title=title.strip(), summary=summary.strip())
