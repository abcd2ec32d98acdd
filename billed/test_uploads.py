import pytest

from billed.effects import Alert, ClearFileInput, UploadReceipt
from billed.new_bill import DraftLocked
from billed.schemas import BillDraft, DraftState
from billed.uploads import (
    REJECTED_FILE_MESSAGE,
    TOO_LARGE_MESSAGE,
    SelectedFile,
    handle_change_file,
    is_accepted,
)


@pytest.mark.parametrize("name", ["image.png", "image.jpg", "image.jpeg", "SCAN.JPG", "photo.Png"])
def test_images_are_accepted(name):
    assert is_accepted(name)


@pytest.mark.parametrize("name", ["image.exe", "image.pdf", "image", "", "png", "image.png.exe"])
def test_other_files_are_rejected(name):
    assert not is_accepted(name)


def test_content_type_must_look_like_an_image():
    assert is_accepted("image.png", "image/png")
    assert is_accepted("image.png", "application/octet-stream")
    assert not is_accepted("image.png", "text/plain")


def test_accepted_file_sets_file_name_and_asks_for_upload():
    draft, effects = handle_change_file(
        BillDraft(), SelectedFile(name="image.png", content_type="image/png", content=b"png")
    )
    assert draft.file_name == "image.png"
    assert draft.file_url is None
    assert effects == [UploadReceipt(file_name="image.png", content=b"png", content_type="image/png")]


def test_rejected_file_leaves_the_draft_alone():
    before = BillDraft(name="Vol Paris Londres")
    draft, effects = handle_change_file(
        before, SelectedFile(name="image.exe", content_type="image/exe", content=b"MZ")
    )
    assert draft == before
    assert draft.file_name is None and draft.file_url is None
    assert effects == [ClearFileInput(), Alert(message=REJECTED_FILE_MESSAGE)]


def test_new_file_replaces_the_previous_receipt():
    before = BillDraft(fileName="old.png", fileUrl="https://test.storage.tld/old.png")
    draft, _ = handle_change_file(before, SelectedFile(name="new.jpg"))
    assert draft.file_name == "new.jpg"
    assert draft.file_url is None


def test_submitted_draft_refuses_new_files():
    with pytest.raises(DraftLocked):
        handle_change_file(BillDraft(state=DraftState.SUBMITTING), SelectedFile(name="image.png"))


def test_oversized_file_is_rejected_before_upload():
    before = BillDraft(name="Vol Paris Londres")
    draft, effects = handle_change_file(
        before, SelectedFile(name="image.png", content_type="image/png", content=b"12345"), max_bytes=4
    )
    assert draft == before
    assert effects == [ClearFileInput(), Alert(message=TOO_LARGE_MESSAGE)]


def test_file_at_the_limit_is_accepted():
    _, effects = handle_change_file(BillDraft(), SelectedFile(name="image.png", content=b"1234"), max_bytes=4)
    assert isinstance(effects[0], UploadReceipt)
