import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from .translations import DEFAULT_LANGUAGE, translate

ROLES = ("user", "assistant")


@dataclass(frozen=True)
class Message:
    id: str
    text: str
    role: str
    timestamp: datetime
    attachments: Optional[List[Dict[str, str]]] = None
    suggested_followups: Optional[List[str]] = None
    related_followups: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "role": self.role,
            "timestamp": _format_timestamp(self.timestamp),
        }
        if self.attachments:
            data["attachments"] = [dict(item) for item in self.attachments]
        if self.suggested_followups:
            data["suggestedQuestions"] = list(self.suggested_followups)
        if self.related_followups:
            data["relatedQuestions"] = list(self.related_followups)
        return data

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Message":
        role = str(raw.get("role", raw.get("sender", "assistant")))
        # Older snapshots used "ai" for the assistant side.
        if role not in ROLES:
            role = "assistant"
        return cls(
            id=str(raw.get("id", "")) or _new_message_id(),
            text=str(raw.get("text", "")),
            role=role,
            timestamp=_parse_timestamp(raw.get("timestamp")),
            attachments=_optional_list(raw.get("attachments")),
            suggested_followups=_optional_list(raw.get("suggestedQuestions")),
            related_followups=_optional_list(raw.get("relatedQuestions")),
        )


def new_message(
    text: str,
    role: str,
    attachments: Optional[List[Dict[str, str]]] = None,
    suggested_followups: Optional[List[str]] = None,
    related_followups: Optional[List[str]] = None,
) -> Message:
    if role not in ROLES:
        raise ValueError(f"Unknown message role: {role}")
    return Message(
        id=_new_message_id(),
        text=text,
        role=role,
        timestamp=_now_utc(),
        attachments=attachments or None,
        suggested_followups=list(suggested_followups) if suggested_followups else None,
        related_followups=list(related_followups) if related_followups else None,
    )


def greeting_message(language: str = DEFAULT_LANGUAGE) -> Message:
    return Message(id="1", text=translate(language, "greeting"), role="assistant", timestamp=_now_utc())


class Transcript:
    """Append-only list of chat messages."""

    def __init__(self, messages: Optional[List[Message]] = None) -> None:
        self._messages: List[Message] = list(messages or [])

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    def append(self, message: Message) -> Message:
        self._messages.append(message)
        return message

    def history_pairs(self, max_turns: Optional[int] = None) -> List[Dict[str, str]]:
        if max_turns is None:
            messages = self._messages
        elif max_turns > 0:
            messages = self._messages[-max_turns:]
        else:
            messages = []
        return [{"role": message.role, "text": message.text} for message in messages]

    def to_json(self) -> str:
        return json.dumps([message.to_dict() for message in self._messages], ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> "Transcript":
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("Transcript snapshot must be a JSON array.")
        return cls([Message.from_dict(item) for item in data if isinstance(item, dict)])


def _optional_list(value: Any) -> Optional[List[Any]]:
    if not isinstance(value, list) or not value:
        return None
    return list(value)


def _new_message_id() -> str:
    return f"m_{uuid.uuid4().hex[:12]}"


def _now_utc() -> datetime:
    return datetime.now(tz=timezone.utc).replace(microsecond=0)


def _format_timestamp(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value or "").strip()
    if not text:
        return _now_utc()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return _now_utc()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
