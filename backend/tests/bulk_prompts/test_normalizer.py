import pytest

from integrations.bulk_prompts.errors import RowValidationError
from integrations.bulk_prompts.models import BulkPromptInput
from integrations.bulk_prompts.normalizer import (
    build_header_map,
    comparable_key,
    missing_required_columns,
    normalize,
    normalize_mapping,
)

HEADER = [
    "Title",
    "content",
    "TAG",
    "custom_url",
    "views",
    "likes",
    "launchGpt",
    "launch_gemini",
    "LaunchClaude",
    "launch_grok",
    "copied",
    "is_invisible",
]


def test_comparable_key_merges_spellings():
    assert comparable_key("customUrl") == comparable_key("custom_url") == "customurl"
    assert comparable_key(" Custom URL ") == "customurl"
    assert comparable_key("is-invisible") == "isinvisible"


def test_header_map_is_case_insensitive():
    header = build_header_map(HEADER)
    assert header.index_of("title") == 0
    assert header.index_of("tag") == 2
    assert header.index_of("custom_url") == 3
    assert header.index_of("launch_claude") == 8
    assert header.index_of("is_invisible") == 11


def test_header_map_first_duplicate_wins():
    header = build_header_map(["title", "Title", "content", "tag"])
    assert header.index_of("title") == 0


def test_missing_required_columns():
    assert missing_required_columns(build_header_map(["title", "views"])) == ["content", "tag"]
    assert missing_required_columns(build_header_map(HEADER)) == []


def test_normalize_full_row():
    row = [
        "  My Prompt ",
        "Write a poem",
        " Writing ",
        " my-prompt ",
        "10",
        "-3",
        "4",
        "5",
        "abc",
        "1",
        "2",
        "YES",
    ]
    prompt = normalize(HEADER, row, row_number=2)

    assert prompt == BulkPromptInput(
        title="My Prompt",
        content="Write a poem",
        tag="writing",
        custom_url="my-prompt",
        views=10,
        likes=0,
        launch_gpt=4,
        launch_gemini=5,
        launch_claude=0,
        launch_grok=1,
        copied=2,
        is_invisible=True,
    )
    assert prompt.total_launch == 10


def test_normalize_defaults_missing_optional_columns():
    prompt = normalize(["title", "content", "tag"], ["t", "c", "g"], row_number=2)
    assert prompt.views == 0
    assert prompt.likes == 0
    assert prompt.copied == 0
    assert prompt.is_invisible is False
    assert prompt.custom_url is None


def test_empty_custom_url_is_omitted():
    prompt = normalize(["title", "content", "tag", "customUrl"], ["t", "c", "g", "   "], row_number=2)
    assert prompt.custom_url is None


def test_short_row_reads_missing_cells_as_empty():
    prompt = normalize(HEADER, ["t", "c", "g"], row_number=5)
    assert prompt.title == "t"
    assert prompt.views == 0


def test_missing_required_field_raises_with_row_number():
    with pytest.raises(RowValidationError) as excinfo:
        normalize(["title", "content", "tag"], ["Only title", "  ", ""], row_number=3)

    assert excinfo.value.row == 3
    assert excinfo.value.missing_fields == ["content", "tag"]
    assert str(excinfo.value) == "Row 3: Missing required fields (content, tag)"


def test_blank_row_is_a_no_op():
    assert normalize(["title", "content", "tag"], ["", "  ", ""], row_number=4) is None


def test_normalize_is_idempotent():
    header = build_header_map(HEADER)
    row = ["t", "c", "TAG", "", "1", "2", "3", "4", "5", "6", "7", "no"]
    assert normalize(header, row, 2) == normalize(header, row, 2)


def test_normalize_mapping_accepts_both_spellings():
    prompt = normalize_mapping(
        {
            "title": "T",
            "content": "C",
            "tag": "Ops",
            "customUrl": "x",
            "launch_gpt": 3,
            "launchGemini": "2",
            "views": -1,
            "isInvisible": True,
        },
        row_number=1,
    )
    assert prompt.tag == "ops"
    assert prompt.custom_url == "x"
    assert prompt.launch_gpt == 3
    assert prompt.launch_gemini == 2
    assert prompt.views == 0
    assert prompt.is_invisible is True


def test_normalize_mapping_missing_fields():
    with pytest.raises(RowValidationError) as excinfo:
        normalize_mapping({"title": "T", "content": None}, row_number=7)
    assert excinfo.value.missing_fields == ["content", "tag"]
