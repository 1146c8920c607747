from src.sem_copilot.graph_store import GraphStore, Link
from src.sem_copilot.persistence import LINKS_KEY, MESSAGES_KEY, NODES_KEY, LocalStateStore
from src.sem_copilot.transcript import Transcript, new_message
from src.sem_copilot.translations import translate


def test_fresh_storage_yields_default_graph_and_thai_greeting(tmp_path):
    store = LocalStateStore(tmp_path)

    transcript = store.load_transcript()
    graph = store.load_graph()

    assert len(transcript) == 1
    assert transcript.messages[0].text == translate("th", "greeting")
    assert [node.label for node in graph.nodes] == ["Leadership", "Quality", "Success"]
    assert len(graph.links) == 2
    assert store.load_dark_mode() is False


def test_graph_round_trip(tmp_path):
    store = LocalStateStore(tmp_path)
    graph = GraphStore()
    graph.add_node("Trust", "observed")
    graph.add_link("1", "2", "covariance")
    store.save_graph(graph)

    restored = LocalStateStore(tmp_path).load_graph()
    assert restored.nodes_as_dicts() == graph.nodes_as_dicts()
    assert restored.links[-1] == Link("1", "2", "covariance")


def test_missing_link_kind_reads_as_directed(tmp_path):
    store = LocalStateStore(tmp_path)
    store.set_json(LINKS_KEY, [{"source": "1", "target": "2"}])
    assert store.load_graph().links == [Link("1", "2", "directed")]


def test_corrupt_files_fall_back_to_defaults(tmp_path, caplog):
    store = LocalStateStore(tmp_path)
    store.set_raw(NODES_KEY, "{not json")
    store.set_raw("drsem_messages", "[broken")

    with caplog.at_level("WARNING"):
        graph = store.load_graph()
        transcript = store.load_transcript("en")

    assert len(graph.nodes) == 3
    assert transcript.messages[0].text == translate("en", "greeting")
    assert "corrupt" in caplog.text


def test_well_formed_json_with_bad_values_falls_back_to_defaults(tmp_path, caplog):
    store = LocalStateStore(tmp_path)
    store.set_json(NODES_KEY, [{"id": "1", "label": "A", "type": "latent", "x": "abc", "y": 0}])
    store.set_json(LINKS_KEY, {"source": "1"})

    with caplog.at_level("WARNING"):
        graph = store.load_graph()

    assert [node.label for node in graph.nodes] == ["Leadership", "Quality", "Success"]
    assert len(graph.links) == 2
    assert "corrupt" in caplog.text


def test_undecodable_files_are_treated_as_missing(tmp_path):
    store = LocalStateStore(tmp_path)
    (tmp_path / "drsem_messages.json").write_bytes(b"\xff\xfe[")
    (tmp_path / "drsem_nodes.json").write_bytes(b"\xff\xfe[")
    (tmp_path / "drsem_theme.json").write_bytes(b"\xff")

    assert store.get_raw(MESSAGES_KEY) is None
    assert store.load_transcript().messages[0].text == translate("th", "greeting")
    assert len(store.load_graph().nodes) == 3
    assert store.load_dark_mode() is False


def test_transcript_and_theme_round_trip(tmp_path):
    store = LocalStateStore(tmp_path)
    transcript = Transcript([new_message("hello", role="user")])
    store.save_transcript(transcript)
    store.save_dark_mode(True)

    assert [m.text for m in store.load_transcript()] == ["hello"]
    assert store.load_dark_mode() is True


def test_clear_removes_every_key(tmp_path):
    store = LocalStateStore(tmp_path)
    store.save_graph(GraphStore(links=[]))
    store.save_dark_mode(True)
    store.clear()

    assert list(tmp_path.iterdir()) == []
    assert len(store.load_graph().links) == 2
