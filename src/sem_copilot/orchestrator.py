import json
import logging
import os
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .attachments import Attachment
from .prompts import build_system_prompt
from .tool_policy import KeywordSets, suggest_tool
from .transcript import Message, Transcript, new_message

logger = logging.getLogger(__name__)

HistoryTurn = Dict[str, str]

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
CONNECTION_ERROR_TEXT = "Error connecting to Dr.SEM. Please check your API Key."
EMPTY_ANSWER_TEXT = "System Error"
CREDENTIAL_MARKERS = ("api_key", "api key", "invalid_api_key", "incorrect api key", "error 401")


class LLMClientError(RuntimeError):
    pass


class MissingCredentialError(LLMClientError):
    pass


@dataclass
class ConsultReply:
    answer: str
    suggested_questions: List[str]
    related_questions: List[str]


@dataclass
class ConsultTurn:
    user_message: Message
    assistant_message: Message
    suggested_tool: Optional[str]
    credential_missing: bool
    source: str
    error: str = ""


class OpenAIChatClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: int = 60,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.getenv("OPENAI_API_KEY", "")
        self.model = model or os.getenv("OPENAI_MODEL", DEFAULT_MODEL)
        self.base_url = (base_url or os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL)).rstrip("/")
        self.timeout_seconds = timeout_seconds

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    def consult(
        self,
        history: List[HistoryTurn],
        user_text: str,
        attachment: Optional[Attachment] = None,
        temperature: float = 0.4,
    ) -> ConsultReply:
        if not self.is_enabled():
            raise MissingCredentialError("OPENAI_API_KEY is not configured.")

        payload = {
            "model": self.model,
            "temperature": temperature,
            "response_format": {"type": "json_object"},
            "messages": build_chat_messages(build_system_prompt(), history, user_text, attachment),
        }
        content = self._post_chat_completion(payload)
        return parse_consult_reply(content)

    def _post_chat_completion(self, payload: Dict[str, Any]) -> str:
        request = urllib.request.Request(
            url=f"{self.base_url}/chat/completions",
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
        )

        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as response:
                raw = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            details = exc.read().decode("utf-8", errors="replace")
            raise LLMClientError(f"OpenAI API error {exc.code}: {details}") from exc
        except urllib.error.URLError as exc:
            raise LLMClientError(f"Network error: {exc}") from exc

        try:
            parsed = json.loads(raw)
            return str(parsed["choices"][0]["message"]["content"] or "")
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMClientError(f"Unexpected response payload: {raw[:200]}") from exc


class ConversationOrchestrator:
    """Runs one consultation turn: a single model call and a transcript update."""

    def __init__(
        self,
        llm_client: Optional[OpenAIChatClient] = None,
        keyword_sets: Optional[KeywordSets] = None,
        max_history_turns: int = 20,
    ) -> None:
        self.llm_client = llm_client or OpenAIChatClient()
        self.keyword_sets = keyword_sets
        self.max_history_turns = max_history_turns

    def run_turn(
        self,
        transcript: Transcript,
        user_text: str,
        attachment: Optional[Attachment] = None,
    ) -> ConsultTurn:
        history = transcript.history_pairs(max_turns=self.max_history_turns)
        user_message = transcript.append(
            new_message(
                user_text,
                role="user",
                attachments=[attachment.transcript_marker()] if attachment else None,
            )
        )

        try:
            reply = self.llm_client.consult(history, user_text, attachment)
        except Exception as exc:
            logger.error("Consultation call failed: %s", exc)
            assistant_message = transcript.append(new_message(CONNECTION_ERROR_TEXT, role="assistant"))
            return ConsultTurn(
                user_message=user_message,
                assistant_message=assistant_message,
                suggested_tool=None,
                credential_missing=mentions_credential_problem(exc),
                source="error",
                error=str(exc),
            )

        answer = reply.answer.strip() or EMPTY_ANSWER_TEXT
        assistant_message = transcript.append(
            new_message(
                answer,
                role="assistant",
                suggested_followups=reply.suggested_questions,
                related_followups=reply.related_questions,
            )
        )
        return ConsultTurn(
            user_message=user_message,
            assistant_message=assistant_message,
            suggested_tool=suggest_tool(reply.answer, self.keyword_sets),
            credential_missing=False,
            source="llm",
        )


def build_chat_messages(
    system_prompt: str,
    history: List[HistoryTurn],
    user_text: str,
    attachment: Optional[Attachment] = None,
) -> List[Dict[str, Any]]:
    messages: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    for turn in history:
        role = "user" if turn.get("role") == "user" else "assistant"
        messages.append({"role": role, "content": turn.get("text", "")})

    if attachment is None:
        messages.append({"role": "user", "content": user_text})
        return messages

    parts: List[Dict[str, Any]] = [{"type": "text", "text": user_text}]
    if attachment.is_image:
        parts.append({"type": "image_url", "image_url": {"url": attachment.data_url()}})
    else:
        parts.append(
            {
                "type": "file",
                "file": {"filename": attachment.filename, "file_data": attachment.data_url()},
            }
        )
    messages.append({"role": "user", "content": parts})
    return messages


def parse_consult_reply(content: str) -> ConsultReply:
    try:
        data = _extract_json_object(content)
    except ValueError:
        return ConsultReply(answer=content.strip(), suggested_questions=[], related_questions=[])

    return ConsultReply(
        answer=str(data.get("answer", "") or ""),
        suggested_questions=_string_list(data.get("suggestedQuestions")),
        related_questions=_string_list(data.get("relatedQuestions")),
    )


def mentions_credential_problem(error: BaseException) -> bool:
    if isinstance(error, MissingCredentialError):
        return True
    text = str(error).lower()
    return any(marker in text for marker in CREDENTIAL_MARKERS)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def _extract_json_object(text: str) -> Dict[str, Any]:
    text = (text or "").strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise ValueError("Model response did not include JSON object.")
    parsed = json.loads(text[start : end + 1])
    if not isinstance(parsed, dict):
        raise ValueError("Model response JSON is not an object.")
    return parsed
