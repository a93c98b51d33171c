import pytest

from rom_builder.framework.config_parser import parse_blob, parse_config
from rom_builder.framework.errors import (
    ConfigParseError,
    DuplicateKeyError,
    MalformedAssignmentError,
    MalformedListError,
)


def test_parses_assignments_flags_lists_and_comments():
    text = "\n".join(
        [
            "-- project settings",
            "input = clean.smc",
            "  output=  hack.smc  ",
            "",
            "verbose",
            "patches",
            "[",
            "  patches/a.asm",
            "patches/b.asm  ",
            "]",
            "temp = temp.smc",
        ]
    )

    parsed = parse_blob(text)

    assert parsed.values == {"input": "clean.smc", "output": "hack.smc", "temp": "temp.smc"}
    assert parsed.lists == {"patches": ["patches/a.asm", "patches/b.asm"]}
    assert parsed.flags == {"verbose"}


def test_comment_lines_never_contribute_even_with_equals():
    parsed = parse_blob("-- input = nope\ninput = yes")
    assert parsed.values == {"input": "yes"}


def test_blank_value_is_kept_as_empty_string():
    parsed = parse_blob("lm_path =\n")
    assert parsed.values == {"lm_path": ""}


def test_crlf_line_endings_are_trimmed():
    parsed = parse_blob("input = clean.smc\r\npatches\r\n[\r\na.asm\r\n]\r\n")
    assert parsed.values == {"input": "clean.smc"}
    assert parsed.lists == {"patches": ["a.asm"]}


def test_assignment_with_two_equals_is_malformed():
    with pytest.raises(MalformedAssignmentError, match=r"cfg:2:"):
        parse_blob("input = a\noutput = b = c\n", source="cfg")


def test_unterminated_list_is_malformed():
    with pytest.raises(MalformedListError, match="closing"):
        parse_blob("patches\n[\na.asm\nb.asm\n")


def test_list_without_a_name_is_malformed():
    with pytest.raises(MalformedListError, match="missing a name"):
        parse_blob("   \n[\na.asm\n]\n")


def test_empty_list_is_allowed():
    parsed = parse_blob("patches\n[\n]\n")
    assert parsed.lists == {"patches": []}


def test_list_entries_may_contain_equals_signs():
    parsed = parse_blob("patches\n[\nflag=1.asm\n]\n")
    assert parsed.lists == {"patches": ["flag=1.asm"]}
    assert parsed.values == {}


def test_duplicate_key_within_blob_is_rejected():
    with pytest.raises(DuplicateKeyError) as excinfo:
        parse_blob("input = a\ninput = b\n", source="config.txt")
    assert excinfo.value.key == "input"
    assert excinfo.value.line == 2


def test_duplicate_key_across_blobs_is_rejected():
    with pytest.raises(DuplicateKeyError, match="second.txt:1"):
        parse_config(("first.txt", "input = a\n"), ("second.txt", "input = b\n"))


def test_list_name_may_not_reuse_an_assignment_key():
    with pytest.raises(DuplicateKeyError):
        parse_config("patches = x\n", "patches\n[\na.asm\n]\n")


def test_multiple_blobs_merge_into_one_result():
    parsed = parse_config(
        ("base.txt", "input = clean.smc\n"),
        ("local.txt", "lm_path = tools/lm.exe\npatches\n[\na.asm\n]\n"),
    )
    assert parsed.values == {"input": "clean.smc", "lm_path": "tools/lm.exe"}
    assert parsed.lists == {"patches": ["a.asm"]}
    assert parsed.sources == ["base.txt", "local.txt"]


def test_parse_is_deterministic():
    text = "input = a\nflag\npatches\n[\nx\ny\n]\n"
    assert parse_config(text) == parse_config(text)


def test_parse_errors_are_config_errors():
    with pytest.raises(ConfigParseError):
        parse_blob("a = b = c")


def test_duplicate_key_with_identical_value_is_rejected():
    with pytest.raises(DuplicateKeyError):
        parse_config("input = a\n", "input = a\n")


def test_blank_lines_inside_a_list_are_entries():
    parsed = parse_blob("patches\n[\na\n\nb\n]\n")
    assert parsed.lists == {"patches": ["a", "", "b"]}
