"""Tests for recovering article payloads from free-form model output."""

import json

import pytest

from services.errors import IncompletePayloadError, MalformedJsonError, NoJsonFoundError
from services.payload_parser import (
    CORE_FIELDS,
    STRICT_FIELDS,
    check_required_fields,
    extract_json_region,
    parse_article_payload,
    parse_json_region,
    parse_topic_list,
    strip_code_fence,
)

_MINIMAL = '{"selectedTitle":"A","articleContent":"B","metaDescription":"C"}'


class TestStripCodeFence:
    def test_strips_fence_with_language_tag(self):
        assert strip_code_fence("```json\n{}\n```") == "{}"

    def test_strips_bare_fence(self):
        assert strip_code_fence("```\n{}```") == "{}"

    def test_fence_not_at_start_is_kept(self):
        text = 'Result: ```json\n{"a": 1}\n```'
        assert strip_code_fence(text).startswith("Result:")

    def test_plain_text_is_only_trimmed(self):
        assert strip_code_fence("  {}  ") == "{}"


class TestExtractJsonRegion:
    def test_fenced_block_yields_inner_object(self):
        assert extract_json_region(f"```json\n{_MINIMAL}\n```") == _MINIMAL

    def test_object_at_end_is_anchored(self):
        text = 'Here is the article: {"selectedTitle": "A", "nested": {"x": 1}}'
        assert extract_json_region(text) == '{"selectedTitle": "A", "nested": {"x": 1}}'

    def test_trailing_prose_falls_back_to_first_object(self):
        text = f"Sure! Here you go: {_MINIMAL} Hope that helps!"
        assert extract_json_region(text) == _MINIMAL

    def test_no_braces_raises(self):
        with pytest.raises(NoJsonFoundError) as excinfo:
            extract_json_region("I could not write that article, sorry.")
        assert excinfo.value.sample == "I could not write that article, sorry."

    def test_sample_is_truncated(self):
        with pytest.raises(NoJsonFoundError) as excinfo:
            extract_json_region("x" * 5000)
        assert len(excinfo.value.sample) <= 203


class TestParseJsonRegion:
    def test_trailing_comma_reports_offset(self):
        region = '{"selectedTitle": "A",}'
        with pytest.raises(MalformedJsonError) as excinfo:
            parse_json_region(region)
        assert 0 <= excinfo.value.offset < len(region)
        assert "position" in excinfo.value.message
        assert excinfo.value.status_code == 500

    def test_context_window_surrounds_error(self):
        region = '{"a": "' + "x" * 100 + '", oops}'
        with pytest.raises(MalformedJsonError) as excinfo:
            parse_json_region(region)
        assert "oops" in excinfo.value.context
        assert len(excinfo.value.context) <= 80


class TestCheckRequiredFields:
    def test_all_present(self):
        check_required_fields(json.loads(_MINIMAL), CORE_FIELDS)

    def test_missing_and_blank_fields_are_named_in_order(self):
        data = {"selectedTitle": "A", "metaDescription": "   "}
        with pytest.raises(IncompletePayloadError) as excinfo:
            check_required_fields(data, CORE_FIELDS)
        assert excinfo.value.missing == ["articleContent", "metaDescription"]
        assert "articleContent, metaDescription" in excinfo.value.message

    def test_strict_fields_require_strategy_blocks(self):
        with pytest.raises(IncompletePayloadError) as excinfo:
            check_required_fields(json.loads(_MINIMAL), STRICT_FIELDS)
        assert "competitiveIntelligence" in excinfo.value.missing
        assert "eeatSignals" in excinfo.value.missing

    def test_empty_object_counts_as_missing(self):
        data = {**json.loads(_MINIMAL), "competitiveIntelligence": {}}
        with pytest.raises(IncompletePayloadError) as excinfo:
            check_required_fields(data, STRICT_FIELDS)
        assert "competitiveIntelligence" in excinfo.value.missing


class TestParseArticlePayload:
    def test_fenced_payload_parses(self):
        result = parse_article_payload(f"```json\n{_MINIMAL}\n```")
        assert result.ok
        assert result.error is None
        assert result.payload.selected_title == "A"
        assert result.payload.article_content == "B"
        assert result.payload.meta_description == "C"

    def test_prose_wrapped_payload_parses(self):
        result = parse_article_payload(f"Sure! Here you go: {_MINIMAL} Hope that helps!")
        assert result.ok
        assert result.payload.selected_title == "A"

    def test_auxiliary_fields_are_kept_as_extras(self):
        data = {
            **json.loads(_MINIMAL),
            "tags": ["one", 2, " two ", ""],
            "urlSlug": "custom-slug",
            "faqSection": [{"question": "Q?", "answer": "A."}, "junk"],
            "schemaMarkup": {"types": ["Article"]},
        }
        payload = parse_article_payload(json.dumps(data)).payload
        assert payload.tags == ["one", "two"]
        assert payload.url_slug == "custom-slug"
        assert payload.faq_section == [{"question": "Q?", "answer": "A."}]
        assert payload.extras == {"schemaMarkup": {"types": ["Article"]}}

    def test_malformed_auxiliary_fields_do_not_block_success(self):
        data = {**json.loads(_MINIMAL), "tags": "not-a-list", "faqSection": None}
        result = parse_article_payload(json.dumps(data))
        assert result.ok
        assert result.payload.tags == []

    @pytest.mark.parametrize(
        ("raw", "error_type"),
        [
            ("no json here", NoJsonFoundError),
            ('{"selectedTitle": "A",}', MalformedJsonError),
            ('{"selectedTitle": "A", "metaDescription": "C"}', IncompletePayloadError),
        ],
    )
    def test_failures_are_returned_not_raised(self, raw, error_type):
        result = parse_article_payload(raw)
        assert not result.ok
        assert result.payload is None
        assert isinstance(result.error, error_type)

    def test_missing_article_content_is_named(self):
        result = parse_article_payload('{"selectedTitle": "A", "metaDescription": "C"}')
        assert result.error.missing == ["articleContent"]

    def test_strict_mode(self):
        assert not parse_article_payload(_MINIMAL, strict=True).ok
        assert parse_article_payload(_MINIMAL, strict=False).ok


class TestParseTopicList:
    def test_parses_array_inside_prose(self):
        raw = 'Topics:\n[{"title": "T1", "primaryKeyword": "k1"}, {"title": "T2", "primaryKeyword": "k2"}]\nDone.'
        topics = parse_topic_list(raw)
        assert [topic["title"] for topic in topics] == ["T1", "T2"]

    def test_incomplete_entries_are_dropped(self):
        raw = '[{"title": "T1", "primaryKeyword": "k1"}, {"title": "", "primaryKeyword": "k2"}, {"title": "T3"}]'
        assert [topic["title"] for topic in parse_topic_list(raw)] == ["T1"]

    def test_non_string_title_or_keyword_is_dropped(self):
        raw = (
            '[{"title": 123, "primaryKeyword": "k1"}, {"title": "T2", "primaryKeyword": ["k2"]},'
            ' {"title": "T3", "primaryKeyword": "k3"}]'
        )
        assert [topic["title"] for topic in parse_topic_list(raw)] == ["T3"]

    def test_missing_array_raises(self):
        with pytest.raises(NoJsonFoundError):
            parse_topic_list('{"title": "T1"}')

    def test_malformed_array_raises(self):
        with pytest.raises(MalformedJsonError):
            parse_topic_list('[{"title": "T1",}]')
