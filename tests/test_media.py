"""Tests for media classification and MIME resolution."""
import pytest

from myra.media import (
    DEFAULT_MEDIA_PROMPT,
    classify_media,
    find_youtube_url,
    get_file_extension,
    normalize_media_prompt,
    resolve_mime_type,
)
from myra.types import MediaInput, MediaType
from tests.conftest import FakeAttachment


def test_video_wins_over_youtube_and_image():
    image = FakeAttachment("photo.png", "image/png")
    video = FakeAttachment("clip.mp4", "video/mp4")
    media = classify_media("regarde https://youtu.be/abc123", [image, video])
    assert media.type == MediaType.VIDEO
    assert media.attachment is video


def test_youtube_wins_over_image():
    image = FakeAttachment("photo.png", "image/png")
    media = classify_media("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=10 c est quoi", [image])
    assert media.type == MediaType.YOUTUBE
    assert media.url == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def test_image_by_extension_without_content_type():
    media = classify_media("", [FakeAttachment("scan.WEBP")])
    assert media.type == MediaType.IMAGE


def test_video_by_extension_without_content_type():
    media = classify_media(None, [FakeAttachment("movie.mov")])
    assert media.type == MediaType.VIDEO


def test_plain_text_and_other_files_yield_none():
    assert classify_media("bonjour", []) is None
    assert classify_media("voici", [FakeAttachment("notes.pdf", "application/pdf")]) is None


@pytest.mark.parametrize("text, expected", [
    ("https://youtu.be/xyz", "https://youtu.be/xyz"),
    ("vois https://m.youtube.com/watch?v=abc ok", "https://m.youtube.com/watch?v=abc"),
    ("https://youtube.com/shorts/short1", "https://youtube.com/shorts/short1"),
    ("https://vimeo.com/123", ""),
    ("", ""),
])
def test_find_youtube_url(text, expected):
    assert find_youtube_url(text) == expected


def test_get_file_extension():
    assert get_file_extension("a.b.JPEG") == "jpeg"
    assert get_file_extension("noext") == ""
    assert get_file_extension(None) == ""


def test_resolve_mime_prefers_declared_type():
    attachment = FakeAttachment("clip.webm", "video/quicktime")
    assert resolve_mime_type(attachment, "video/mp4", MediaType.VIDEO) == "video/quicktime"


def test_resolve_mime_uses_response_type_and_strips_parameters():
    attachment = FakeAttachment("clip.bin")
    assert resolve_mime_type(attachment, "image/png; charset=binary", MediaType.IMAGE) == "image/png"


@pytest.mark.parametrize("filename, media_type, expected", [
    ("clip.webm", MediaType.VIDEO, "video/webm"),
    ("clip.unknown", MediaType.VIDEO, "video/mp4"),
    ("pic.gif", MediaType.IMAGE, "image/gif"),
    ("pic.jpg", MediaType.IMAGE, "image/jpeg"),
])
def test_resolve_mime_falls_back_to_extension_table(filename, media_type, expected):
    assert resolve_mime_type(FakeAttachment(filename), "", media_type) == expected


def test_normalize_media_prompt():
    youtube = MediaInput(type=MediaType.YOUTUBE, url="https://youtu.be/x")
    assert normalize_media_prompt("https://youtu.be/x", youtube) == DEFAULT_MEDIA_PROMPT
    assert normalize_media_prompt("resume https://youtu.be/x", youtube) == "resume"
    image = MediaInput(type=MediaType.IMAGE, attachment=FakeAttachment("a.png"))
    assert normalize_media_prompt("  ", image) == DEFAULT_MEDIA_PROMPT
    assert normalize_media_prompt("Qui est-ce ?", image) == "Qui est-ce ?"


def test_describe_media_placeholder():
    assert MediaInput(type=MediaType.YOUTUBE, url="u").describe() == "Analyse media (youtube)"
