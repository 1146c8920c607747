import json
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

from .graph_store import GraphStore, Link, Node, default_links, default_nodes
from .transcript import Transcript, greeting_message
from .translations import DEFAULT_LANGUAGE

logger = logging.getLogger(__name__)

MESSAGES_KEY = "drsem_messages"
NODES_KEY = "drsem_nodes"
LINKS_KEY = "drsem_links"
THEME_KEY = "drsem_theme"
STATE_KEYS = (MESSAGES_KEY, NODES_KEY, LINKS_KEY, THEME_KEY)


class LocalStateStore:
    """Key-value JSON snapshots, one file per key.

    Every save rewrites the whole value. Two sessions pointed at the same
    directory overwrite each other's last write.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def get_raw(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                return handle.read()
        except UnicodeDecodeError:
            logger.warning("Ignoring undecodable state file for key %s", key)
            return None

    def set_raw(self, key: str, value: str) -> None:
        with self._path(key).open("w", encoding="utf-8") as handle:
            handle.write(value)

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get_raw(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Ignoring corrupt state file for key %s", key)
            return default

    def set_json(self, key: str, payload: Any) -> None:
        self.set_raw(key, json.dumps(payload, ensure_ascii=False, indent=2))

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def clear(self) -> None:
        for key in STATE_KEYS:
            self.remove(key)

    def load_transcript(self, language: str = DEFAULT_LANGUAGE) -> Transcript:
        raw = self.get_raw(MESSAGES_KEY)
        if raw is not None:
            try:
                transcript = Transcript.from_json(raw)
            except ValueError:
                logger.warning("Ignoring corrupt transcript snapshot")
            else:
                if len(transcript):
                    return transcript
        return Transcript([greeting_message(language)])

    def save_transcript(self, transcript: Transcript) -> None:
        if not len(transcript):
            return
        self.set_raw(MESSAGES_KEY, transcript.to_json())

    def load_graph(self) -> GraphStore:
        nodes_data = self.get_json(NODES_KEY)
        links_data = self.get_json(LINKS_KEY)
        nodes = _parse_items(NODES_KEY, nodes_data, Node.from_dict, default_nodes)
        links = _parse_items(LINKS_KEY, links_data, Link.from_dict, default_links)
        return GraphStore(nodes=nodes, links=links)

    def save_graph(self, store: GraphStore) -> None:
        self.set_json(NODES_KEY, store.nodes_as_dicts())
        self.set_json(LINKS_KEY, store.links_as_dicts())

    def load_dark_mode(self) -> bool:
        return self.get_raw(THEME_KEY) == "dark"

    def save_dark_mode(self, dark_mode: bool) -> None:
        self.set_raw(THEME_KEY, "dark" if dark_mode else "light")

    def _path(self, key: str) -> Path:
        if key not in STATE_KEYS:
            raise ValueError(f"Unknown state key: {key}")
        return self.base_dir / f"{key}.json"


def _parse_items(
    key: str,
    raw_items: Any,
    parser: Callable[[dict], Any],
    default: Callable[[], List[Any]],
) -> List[Any]:
    if not isinstance(raw_items, list):
        return default()
    try:
        return [parser(item) for item in raw_items if isinstance(item, dict)]
    except (TypeError, ValueError):
        logger.warning("Ignoring corrupt state file for key %s", key)
        return default()
