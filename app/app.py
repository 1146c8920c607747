from pathlib import Path
import sys

import streamlit as st
import streamlit.components.v1 as components
from streamlit_flow import streamlit_flow
from streamlit_flow.elements import StreamlitFlowEdge, StreamlitFlowNode
from streamlit_flow.state import StreamlitFlowState

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from src.sem_copilot.apa_table import (  # noqa: E402
    DEFAULT_TABLE_CSV,
    DEFAULT_TABLE_NOTE,
    DEFAULT_TABLE_TITLE,
    ApaTable,
)
from src.sem_copilot.attachments import AttachmentError, UploadSlot, encode_attachment  # noqa: E402
from src.sem_copilot.canvas_mapper import (  # noqa: E402
    changed_positions,
    flow_positions,
    to_flow_edge_specs,
    to_flow_node_specs,
)
from src.sem_copilot.diagram_editor import DiagramEditor  # noqa: E402
from src.sem_copilot.fit_indices import FIT_CRITERIA, evaluate_fit_indices, summarize_fit  # noqa: E402
from src.sem_copilot.log_config import configure_logging  # noqa: E402
from src.sem_copilot.mermaid_export import render_mermaid_preview_html  # noqa: E402
from src.sem_copilot.orchestrator import ConversationOrchestrator, OpenAIChatClient  # noqa: E402
from src.sem_copilot.persistence import LocalStateStore  # noqa: E402
from src.sem_copilot.settings import AppSettings  # noqa: E402
from src.sem_copilot.syntax_helper import (  # noqa: E402
    build_lavaan_syntax,
    get_jamovi_steps,
    get_syntax_template,
    list_syntax_templates,
    parse_model_outline,
)
from src.sem_copilot.tool_policy import (  # noqa: E402
    TOOL_LABEL_KEYS,
    TOOL_MODES,
    get_export_filename,
    should_show_suggestion,
)
from src.sem_copilot.translations import LANGUAGES, translate  # noqa: E402

SETTINGS = AppSettings.from_env()
configure_logging(SETTINGS.log_level)

FIT_INPUT_KEYS = ("CHISQ_DF", "CFI", "TLI", "RMSEA", "SRMR", "GFI", "NFI")
STATUS_BADGES = {"good": "🟢", "acceptable": "🟡", "poor": "🔴"}


@st.cache_resource
def get_state_store() -> LocalStateStore:
    return LocalStateStore(SETTINGS.data_dir)


def get_runtime_llm_client() -> OpenAIChatClient:
    key_source = str(st.session_state.get("llm_key_source", "Environment"))
    app_key = str(st.session_state.get("llm_api_key", "")).strip()
    api_key = app_key if key_source == "Input in App" else SETTINGS.api_key
    model = str(st.session_state.get("llm_model", "")).strip() or SETTINGS.model
    return OpenAIChatClient(
        api_key=api_key,
        model=model,
        base_url=SETTINGS.base_url,
        timeout_seconds=SETTINGS.timeout_seconds,
    )


def get_orchestrator() -> ConversationOrchestrator:
    return ConversationOrchestrator(llm_client=get_runtime_llm_client())


def save_graph(editor: DiagramEditor) -> None:
    get_state_store().save_graph(editor.store)


def ensure_state() -> None:
    store = get_state_store()
    if "language" not in st.session_state:
        st.session_state.language = "th"
    if "dark_mode" not in st.session_state:
        st.session_state.dark_mode = store.load_dark_mode()
    if "transcript" not in st.session_state:
        st.session_state.transcript = store.load_transcript(st.session_state.language)
    if "editor" not in st.session_state:
        st.session_state.editor = DiagramEditor(
            store=store.load_graph(),
            dark_mode=st.session_state.dark_mode,
            on_change=save_graph,
        )
    if "tool_mode" not in st.session_state:
        st.session_state.tool_mode = "conceptual"
    if "suggested_tool" not in st.session_state:
        st.session_state.suggested_tool = None
    if "credential_missing" not in st.session_state:
        st.session_state.credential_missing = False
    if "pending_prompt" not in st.session_state:
        st.session_state.pending_prompt = ""
    if "upload_slot" not in st.session_state:
        st.session_state.upload_slot = UploadSlot()
    if "flow_version" not in st.session_state:
        st.session_state.flow_version = 0
    if "apa_hidden_columns" not in st.session_state:
        st.session_state.apa_hidden_columns = []
    if "llm_key_source" not in st.session_state:
        st.session_state.llm_key_source = "Environment"
    if "llm_api_key" not in st.session_state:
        st.session_state.llm_api_key = ""
    if "llm_model" not in st.session_state:
        st.session_state.llm_model = SETTINGS.model


def t(key: str) -> str:
    return translate(st.session_state.language, key)


def bump_flow() -> None:
    st.session_state.flow_version += 1


def queue_prompt(text: str) -> None:
    st.session_state.pending_prompt = text


def switch_tool(mode: str) -> None:
    st.session_state.tool_mode = mode
    st.session_state.suggested_tool = None


def dismiss_suggestion() -> None:
    st.session_state.suggested_tool = None


def submit_turn(user_text: str, uploaded_file=None) -> None:
    attachment = None
    if uploaded_file is not None:
        try:
            attachment = encode_attachment(uploaded_file.name, uploaded_file.getvalue(), uploaded_file.type or "")
        except AttachmentError as exc:
            st.warning(str(exc))
            return

    transcript = st.session_state.transcript
    with st.spinner("Dr.SEM is thinking..."):
        turn = get_orchestrator().run_turn(transcript, user_text, attachment)
    get_state_store().save_transcript(transcript)
    if attachment is not None:
        st.session_state.upload_slot.consume()

    if turn.credential_missing:
        st.session_state.credential_missing = True
    if should_show_suggestion(turn.suggested_tool, st.session_state.tool_mode):
        st.session_state.suggested_tool = turn.suggested_tool


def to_flow_state(editor: DiagramEditor) -> StreamlitFlowState:
    flow_nodes = [
        StreamlitFlowNode(**spec) for spec in to_flow_node_specs(editor.store.nodes, editor.pending_source_id)
    ]
    flow_edges = [StreamlitFlowEdge(**spec) for spec in to_flow_edge_specs(editor.store.resolved_links())]
    return StreamlitFlowState(nodes=flow_nodes, edges=flow_edges)


def render_mermaid_preview(mermaid_code: str, height: int = 360) -> None:
    components.html(
        render_mermaid_preview_html(mermaid_code, st.session_state.dark_mode),
        height=height,
        scrolling=True,
    )


def render_credential_gate() -> None:
    st.error("Dr.SEM could not authenticate with the model service.")
    st.caption("Provide an OpenAI API key to continue. It is kept only in this Streamlit session.")
    api_key = st.text_input("OpenAI API Key", type="password", key="gate_api_key_input").strip()
    if st.button("Continue", type="primary", disabled=not api_key):
        st.session_state.llm_key_source = "Input in App"
        st.session_state.llm_api_key = api_key
        st.session_state.credential_missing = False
        st.rerun()
    st.stop()


def render_chat() -> None:
    messages = st.session_state.transcript.messages
    for index, message in enumerate(messages):
        with st.chat_message(message.role):
            st.markdown(message.text)
            for attachment in message.attachments or []:
                st.caption(f"📎 {attachment.get('content', '')}")
            if message.role != "assistant" or index != len(messages) - 1:
                continue
            if message.suggested_followups:
                st.markdown(f"**{t('importantQuestions')}**")
                for q_index, question in enumerate(message.suggested_followups):
                    st.button(question, key=f"suggested_{message.id}_{q_index}", on_click=queue_prompt, args=(question,))
            if message.related_followups:
                st.markdown(f"**{t('relatedQuestions')}**")
                for q_index, question in enumerate(message.related_followups):
                    st.button(question, key=f"related_{message.id}_{q_index}", on_click=queue_prompt, args=(question,))

    suggested = st.session_state.suggested_tool
    if should_show_suggestion(suggested, st.session_state.tool_mode):
        col_text, col_switch, col_dismiss = st.columns([3, 1, 1])
        col_text.info(f"{t('suggestion')} {t(TOOL_LABEL_KEYS[suggested])}")
        col_switch.button(t("switch"), key="switch_tool", on_click=switch_tool, args=(suggested,))
        col_dismiss.button("✕", key="dismiss_tool", on_click=dismiss_suggestion)


def render_canvas(editor: DiagramEditor) -> None:
    col_mode, col_kind = st.columns(2)
    mode = col_mode.radio("Mode", ["move", "link"], index=0 if editor.mode == "move" else 1, horizontal=True)
    kind = col_kind.radio(
        "Link type",
        ["directed", "covariance"],
        index=0 if editor.link_kind == "directed" else 1,
        horizontal=True,
        disabled=mode != "link",
    )
    if mode != editor.mode:
        if mode == "link":
            editor.set_link_mode(kind)
        else:
            editor.set_move_mode()
        bump_flow()
    elif kind != editor.link_kind:
        editor.set_link_kind(kind)

    with st.form("add_node_form", clear_on_submit=True):
        col_label, col_type, col_add = st.columns([3, 2, 1])
        label = col_label.text_input("Variable name", placeholder="e.g. Satisfaction")
        node_kind = col_type.selectbox("Type", ["latent", "observed"])
        if col_add.form_submit_button("Add"):
            if editor.add_node(label, node_kind) is not None:
                bump_flow()

    col_undo, col_arrange, col_clear, col_confirm = st.columns(4)
    if col_undo.button("Undo last link", use_container_width=True):
        if editor.undo_last_link() is not None:
            bump_flow()
    if col_arrange.button("Auto arrange", use_container_width=True):
        editor.auto_arrange()
        bump_flow()
    confirm_clear = col_confirm.checkbox("Confirm clear")
    if col_clear.button("Clear links", use_container_width=True):
        if editor.clear_links(confirm_clear):
            bump_flow()
        elif not confirm_clear:
            st.warning("Tick 'Confirm clear' to remove every link.")

    if editor.mode == "link":
        pending = editor.store.get_node(editor.pending_source_id) if editor.pending_source_id else None
        if pending is not None:
            st.caption(f"Source: **{pending.label}**. Click a target node.")
        else:
            st.caption("Click a source node, then a target node.")

    curr_state = streamlit_flow(
        f"sem_canvas_{st.session_state.flow_version}",
        to_flow_state(editor),
        fit_view=True,
        height=420,
        get_node_on_click=True,
    )

    moved = changed_positions(editor.store.nodes, flow_positions(curr_state.nodes))
    if editor.mode == "move":
        for node_id, (x, y) in moved.items():
            editor.move_node(node_id, x, y)

    selected_id = getattr(curr_state, "selected_id", None)
    # A re-keyed canvas starts with no selection.
    if editor.mode == "link" and selected_id:
        editor.click_node(selected_id)
        bump_flow()
        st.rerun()

    st.markdown("#### Mermaid Preview")
    render_mermaid_preview(editor.mermaid_text)
    with st.expander("Export", expanded=False):
        st.code(editor.mermaid_text, language="mermaid")
        st.download_button(
            "Export Mermaid (.mmd)",
            data=editor.mermaid_text,
            file_name=get_export_filename("mermaid"),
            mime="text/plain",
            use_container_width=True,
        )


def render_fit_checker() -> None:
    with st.form("fit_form"):
        columns = st.columns(4)
        values = {}
        for index, key in enumerate(FIT_INPUT_KEYS):
            values[key] = columns[index % 4].text_input(FIT_CRITERIA[key].name, key=f"fit_{key}")
        submitted = st.form_submit_button("Evaluate")
    if not submitted:
        return

    results = evaluate_fit_indices(values)
    summary = summarize_fit(results)
    if summary["verdict"] == "none":
        st.info(summary["message"])
        return
    for result in results:
        st.markdown(
            f"{STATUS_BADGES[result.status]} **{result.name} = {result.value:.3f}** "
            f"({result.status}; {result.threshold})  \n{result.recommendation}"
        )
    if summary["verdict"] == "poor":
        st.error(summary["message"])
    elif summary["verdict"] == "acceptable":
        st.warning(summary["message"])
    else:
        st.success(summary["message"])


def render_apa_table() -> None:
    title = st.text_area("Title", value=DEFAULT_TABLE_TITLE, height=70)
    csv_text = st.text_area("Data (comma separated, first row is the header)", value=DEFAULT_TABLE_CSV, height=140)
    note = st.text_input("Note", value=DEFAULT_TABLE_NOTE)

    table = ApaTable.from_csv(title, csv_text, note, st.session_state.apa_hidden_columns)
    if table.header:
        st.caption("Visible columns")
        columns = st.columns(min(len(table.header), 6))
        for index, column in enumerate(table.header):
            shown = columns[index % len(columns)].checkbox(
                column or "(blank)", value=column not in table.hidden_columns, key=f"apa_col_{index}_{column}"
            )
            if shown == (column in table.hidden_columns):
                table.toggle_column(column)
        st.session_state.apa_hidden_columns = table.hidden_columns

    markdown = table.to_markdown()
    st.markdown(markdown)
    col_md, col_pdf = st.columns(2)
    col_md.download_button(
        "Download Markdown",
        data=markdown,
        file_name=get_export_filename("markdown"),
        mime="text/markdown",
        use_container_width=True,
    )
    col_pdf.download_button(
        "Download PDF",
        data=table.to_pdf(),
        file_name=get_export_filename("pdf"),
        mime="application/pdf",
        use_container_width=True,
    )


def render_syntax_helper() -> None:
    templates = list_syntax_templates()
    lookup = {template["id"]: template for template in templates}
    template_id = st.selectbox("Template", list(lookup), format_func=lambda x: lookup[x]["name"])
    st.caption(lookup[template_id]["description"])
    st.code(get_syntax_template(template_id), language="r")
    st.markdown("**Jamovi steps**")
    for step_index, step in enumerate(get_jamovi_steps(template_id), start=1):
        st.markdown(f"{step_index}. {step}")

    st.markdown("#### Build from outline")
    outline_text = st.text_area(
        "Outline",
        value="Leadership: L1, L2, L3\nSuccess: S1, S2, S3\nSuccess ~ Leadership",
        height=120,
    )
    outline = parse_model_outline(outline_text)
    syntax = build_lavaan_syntax(outline)
    if syntax:
        st.code(syntax, language="r")
        st.download_button(
            "Download lavaan syntax",
            data=syntax,
            file_name=get_export_filename("lavaan"),
            mime="text/plain",
        )
    else:
        st.info("Write factors as `Factor: item1, item2` and paths as `Outcome ~ Predictor`.")
    if outline.skipped_lines:
        st.caption("Skipped: " + "; ".join(line.strip() for line in outline.skipped_lines))


st.set_page_config(page_title="Dr.SEM Copilot", layout="wide")
ensure_state()

with st.sidebar:
    st.markdown("### Dr.SEM")
    st.session_state.language = st.selectbox(
        "Language",
        LANGUAGES,
        index=LANGUAGES.index(st.session_state.language),
        format_func=lambda code: {"th": "ไทย", "en": "English", "cn": "中文"}[code],
    )
    dark_mode = st.toggle("Dark theme", value=st.session_state.dark_mode)
    if dark_mode != st.session_state.dark_mode:
        st.session_state.dark_mode = dark_mode
        get_state_store().save_dark_mode(dark_mode)
        st.session_state.editor.set_dark_mode(dark_mode)

    st.markdown("### LLM Settings")
    st.session_state.llm_key_source = st.radio(
        "API Key Source",
        ["Environment", "Input in App"],
        index=0 if st.session_state.llm_key_source == "Environment" else 1,
        horizontal=True,
    )
    st.session_state.llm_model = st.text_input("Model", value=st.session_state.llm_model).strip() or SETTINGS.model
    if st.session_state.llm_key_source == "Input in App":
        st.session_state.llm_api_key = st.text_input(
            "OpenAI API Key",
            value=st.session_state.llm_api_key,
            type="password",
            help="Stored only in current Streamlit session.",
        ).strip()
        st.caption("Key status: configured" if st.session_state.llm_api_key else "Key status: not set")
    else:
        st.caption(f"Env key status: {'configured' if SETTINGS.api_key else 'not set'}")

    st.markdown("### Workspace")
    if st.button("Reset workspace", use_container_width=True):
        get_state_store().clear()
        for key in ("transcript", "editor", "suggested_tool", "apa_hidden_columns"):
            st.session_state.pop(key, None)
        st.rerun()

if st.session_state.credential_missing:
    render_credential_gate()

st.title("Dr.SEM Copilot")
chat_col, tool_col = st.columns([1, 1])

with chat_col:
    render_chat()
    uploaded = st.file_uploader(
        t("upload"),
        type=["pdf", "csv", "txt", "png", "jpg", "jpeg", "gif", "webp"],
        key=st.session_state.upload_slot.widget_key,
    )
    prompt = st.chat_input(t("placeholder"))
    if st.session_state.pending_prompt and not prompt:
        prompt = st.session_state.pending_prompt
    if prompt:
        st.session_state.pending_prompt = ""
        submit_turn(prompt, uploaded)
        st.rerun()

with tool_col:
    st.radio(
        "Tool",
        TOOL_MODES,
        format_func=lambda mode: t(TOOL_LABEL_KEYS[mode]),
        horizontal=True,
        key="tool_mode",
        label_visibility="collapsed",
    )
    if st.session_state.tool_mode == "conceptual":
        render_canvas(st.session_state.editor)
    elif st.session_state.tool_mode == "fit_checker":
        render_fit_checker()
    elif st.session_state.tool_mode == "apa_table":
        render_apa_table()
    else:
        render_syntax_helper()
