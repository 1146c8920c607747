from src.sem_copilot.attachments import encode_attachment
from src.sem_copilot.orchestrator import (
    CONNECTION_ERROR_TEXT,
    EMPTY_ANSWER_TEXT,
    ConsultReply,
    ConversationOrchestrator,
    LLMClientError,
    MissingCredentialError,
    OpenAIChatClient,
    build_chat_messages,
    parse_consult_reply,
)
from src.sem_copilot.transcript import Transcript, greeting_message


class RecordingStubClient:
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def consult(self, history, user_text, attachment=None, temperature=0.4):
        self.calls.append((history, user_text, attachment))
        return self.reply


class FailingStubClient:
    def __init__(self, error):
        self.error = error

    def consult(self, history, user_text, attachment=None, temperature=0.4):
        raise self.error


def test_run_turn_appends_user_and_assistant_messages_with_one_call():
    client = RecordingStubClient(
        ConsultReply(
            answer="Check CFI and RMSEA first.",
            suggested_questions=["What is a good CFI?"],
            related_questions=["How to report fit?"],
        )
    )
    transcript = Transcript([greeting_message("en")])

    turn = ConversationOrchestrator(llm_client=client).run_turn(transcript, "Is my model OK?")

    assert len(client.calls) == 1
    history, user_text, attachment = client.calls[0]
    assert history == [{"role": "assistant", "text": greeting_message("en").text}]
    assert user_text == "Is my model OK?"
    assert attachment is None
    assert [m.role for m in transcript] == ["assistant", "user", "assistant"]
    assert turn.assistant_message.suggested_followups == ["What is a good CFI?"]
    assert turn.assistant_message.related_followups == ["How to report fit?"]
    assert turn.suggested_tool == "fit_checker"
    assert turn.source == "llm"


def test_attachment_name_is_recorded_on_user_message():
    client = RecordingStubClient(ConsultReply("Looks fine.", [], []))
    attachment = encode_attachment("model.png", b"\x89PNG")
    transcript = Transcript()

    turn = ConversationOrchestrator(llm_client=client).run_turn(transcript, "See diagram", attachment)

    assert turn.user_message.attachments == [{"type": "file", "content": "model.png"}]
    assert client.calls[0][2] is attachment
    assert turn.suggested_tool is None


def test_empty_answer_becomes_system_error():
    transcript = Transcript()
    turn = ConversationOrchestrator(llm_client=RecordingStubClient(ConsultReply("  ", [], []))).run_turn(
        transcript, "hi"
    )
    assert turn.assistant_message.text == EMPTY_ANSWER_TEXT


def test_failure_appends_fixed_error_and_flags_credentials():
    transcript = Transcript()
    client = FailingStubClient(LLMClientError('OpenAI API error 401: {"code": "invalid_api_key"}'))

    turn = ConversationOrchestrator(llm_client=client).run_turn(transcript, "hi")

    assert transcript.messages[-1].text == CONNECTION_ERROR_TEXT
    assert turn.credential_missing is True
    assert turn.source == "error"


def test_network_failure_does_not_flag_credentials():
    transcript = Transcript()
    turn = ConversationOrchestrator(llm_client=FailingStubClient(LLMClientError("Network error: timeout"))).run_turn(
        transcript, "hi"
    )
    assert turn.assistant_message.text == CONNECTION_ERROR_TEXT
    assert turn.credential_missing is False


def test_missing_key_raises_missing_credential_and_orchestrator_flags_it():
    client = OpenAIChatClient(api_key="", model="gpt-4o-mini")
    assert client.is_enabled() is False

    turn = ConversationOrchestrator(llm_client=client).run_turn(Transcript(), "hi")
    assert turn.credential_missing is True
    assert isinstance(MissingCredentialError("x"), LLMClientError)


def test_custom_keyword_sets_override_tool_suggestion():
    client = RecordingStubClient(ConsultReply("Open jamovi and paste the code.", [], []))
    orchestrator = ConversationOrchestrator(llm_client=client, keyword_sets=(("apa_table", ("paste",)),))
    assert orchestrator.run_turn(Transcript(), "how?").suggested_tool == "apa_table"


def test_parse_consult_reply_reads_json_or_falls_back_to_text():
    reply = parse_consult_reply('{"answer": "A", "suggestedQuestions": ["q1", ""], "relatedQuestions": "bad"}')
    assert reply == ConsultReply(answer="A", suggested_questions=["q1"], related_questions=[])

    plain = parse_consult_reply("Plain markdown answer")
    assert plain.answer == "Plain markdown answer"
    assert plain.suggested_questions == []


def test_build_chat_messages_encodes_images_and_documents():
    image = encode_attachment("fig.png", b"img")
    document = encode_attachment("data.csv", b"a,b")

    image_messages = build_chat_messages("sys", [{"role": "assistant", "text": "hello"}], "look", image)
    assert image_messages[0] == {"role": "system", "content": "sys"}
    assert image_messages[1] == {"role": "assistant", "content": "hello"}
    assert image_messages[-1]["content"][1]["type"] == "image_url"
    assert image_messages[-1]["content"][1]["image_url"]["url"].startswith("data:image/png;base64,")

    document_messages = build_chat_messages("sys", [], "read", document)
    file_part = document_messages[-1]["content"][1]
    assert file_part["type"] == "file"
    assert file_part["file"]["filename"] == "data.csv"

    assert build_chat_messages("sys", [], "plain")[-1] == {"role": "user", "content": "plain"}


def test_digits_401_elsewhere_in_error_text_do_not_flag_credentials():
    transcript = Transcript()
    client = FailingStubClient(LLMClientError("Network error: connection refused on port 4010 (req_401abc)"))
    turn = ConversationOrchestrator(llm_client=client).run_turn(transcript, "hi")
    assert turn.credential_missing is False

    http_401 = FailingStubClient(LLMClientError("OpenAI API error 401: Unauthorized"))
    assert ConversationOrchestrator(llm_client=http_401).run_turn(Transcript(), "hi").credential_missing is True
