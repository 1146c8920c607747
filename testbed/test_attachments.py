import pytest

from src.sem_copilot.attachments import (
    AttachmentError,
    AttachmentTooLargeError,
    EmptyAttachmentError,
    UnsupportedAttachmentError,
    UploadSlot,
    encode_attachment,
)


def test_image_attachment_is_base64_encoded_with_mime_type():
    attachment = encode_attachment("charts/path.png", b"abc")
    assert attachment.filename == "path.png"
    assert attachment.mime_type == "image/png"
    assert attachment.data == "YWJj"
    assert attachment.is_image
    assert attachment.data_url() == "data:image/png;base64,YWJj"
    assert attachment.transcript_marker() == {"type": "file", "content": "path.png"}


def test_explicit_mime_type_wins():
    attachment = encode_attachment("data.csv", b"a,b", mime_type="text/csv")
    assert attachment.mime_type == "text/csv"
    assert not attachment.is_image


@pytest.mark.parametrize(
    "filename, content, error",
    [
        ("tool.exe", b"x", UnsupportedAttachmentError),
        ("README", b"x", UnsupportedAttachmentError),
        ("empty.txt", b"", EmptyAttachmentError),
    ],
)
def test_invalid_attachments_raise(filename, content, error):
    with pytest.raises(error):
        encode_attachment(filename, content)


def test_size_limit_is_enforced():
    with pytest.raises(AttachmentTooLargeError) as excinfo:
        encode_attachment("big.pdf", b"1234", max_bytes=3)
    assert isinstance(excinfo.value, AttachmentError)


def test_upload_slot_moves_to_fresh_key_after_each_sent_file():
    slot = UploadSlot()
    first_key = slot.widget_key
    slot.consume()
    second_key = slot.widget_key
    slot.consume()

    assert len({first_key, second_key, slot.widget_key}) == 3
