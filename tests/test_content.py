"""
Content type records, validators and wire conversion.
"""

from dataclasses import replace

import pytest

from cms.core.content import (
    CONTENT_TYPES,
    FAQ,
    HighlightItem,
    SectorItem,
    Service,
    add_text_line,
    clear_uploads,
    get_content_type,
    is_filled,
    pending_uploads,
    record_from_values,
    record_to_values,
    remove_text_line,
    searchable_text,
)
from cms.core.schema import ClientKey, PendingUpload


class TestIsFilled:

    @pytest.mark.parametrize("value,expected", [
        ("text", True),
        ("   ", False),
        ("", False),
        (("", "line"), True),
        (("", "  "), False),
        ([], False),
        (0, False),
        (30, True),
        (None, False),
    ])
    def test_values(self, value, expected):
        assert is_filled(value) is expected


class TestValidators:

    def test_faq_requires_question_and_answer(self):
        faq = get_content_type("faq")
        assert not faq.is_valid(FAQ(question="Q1"))
        assert not faq.is_valid(FAQ(question="Q1", answer="   "))
        assert faq.is_valid(FAQ(question="Q1", answer="A1"))

    def test_service_requires_title_and_description(self):
        details = get_content_type("details")
        assert not details.is_valid(Service(title="Consulting"))
        assert details.is_valid(Service(title="Consulting", description="We consult"))

    def test_news_requires_title_and_fallback(self):
        newsletter = get_content_type("newsletter")
        record = newsletter.new_record()
        assert not newsletter.is_valid(replace(record, title="Launch"))
        assert newsletter.is_valid(replace(record, title="Launch", fallback="Launch news"))

    def test_highlight_accepts_chosen_video_file(self):
        highlights = get_content_type("highlights")
        record = HighlightItem(text_lists=("Big news", ""))
        assert not highlights.is_valid(record)
        assert highlights.is_valid(replace(record, video="clip.mp4"))
        assert highlights.is_valid(replace(record, video_file=PendingUpload("clip.mp4", b"data")))

    def test_sectors_always_addable_but_filtered_on_submit(self):
        setors = get_content_type("setors")
        blank = setors.new_record()
        assert setors.is_valid(blank), "No validator means always addable"
        assert not setors.should_submit(blank)
        assert setors.should_submit(replace(blank, link="https://example.com"))
        assert setors.should_submit(replace(blank, file=PendingUpload("a.png", b"x")))

    def test_submit_filter_defaults_to_validator(self):
        faq = get_content_type("faq")
        assert not faq.should_submit(FAQ(question="Q"))
        assert faq.should_submit(FAQ(question="Q", answer="A"))


class TestRegistry:

    def test_registered_types(self):
        assert set(CONTENT_TYPES) == {"faq", "details", "newsletter", "setors", "highlights"}

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unknown content type"):
            get_content_type("blog")

    def test_new_records_are_independent(self):
        """Each new record is a fresh value with its own key."""
        for content_type in CONTENT_TYPES.values():
            first = content_type.new_record()
            second = content_type.new_record()
            assert first.key != second.key
            assert first.key.startswith(content_type.name)
            assert first == second, "Keys do not take part in equality"

    def test_title_of(self):
        assert get_content_type("faq").title_of(FAQ(question="Why?")) == "Why?"
        highlights = get_content_type("highlights")
        assert highlights.title_of(HighlightItem(text_lists=("", "Second line"))) == "Second line"
        assert highlights.title_of(HighlightItem()) == ""


class TestWireValues:

    def test_record_to_values_uses_wire_names(self):
        record = HighlightItem(text_lists=("a", "b"), video="v.mp4", video_duration=12,
                               video_file=PendingUpload("v.mp4", b"x"), key=ClientKey("k"))
        assert record_to_values(record) == {"textLists": ["a", "b"], "video": "v.mp4", "videoDuration": 12}

    def test_upload_and_key_never_on_the_wire(self):
        values = record_to_values(Service(title="T", file=PendingUpload("a.png", b"x"), key=ClientKey("k")))
        assert "file" not in values
        assert "key" not in values

    def test_record_from_values_coerces_loose_types(self):
        record = record_from_values(HighlightItem, {"textLists": "single", "videoDuration": "30.0",
                                                    "video": None}, ClientKey("k"))
        assert record.text_lists == ("single",)
        assert record.video_duration == 30
        assert record.video == ""
        assert record.key == "k"

    def test_record_from_values_ignores_unknown_fields(self):
        record = record_from_values(FAQ, {"question": "Q", "answer": "A", "_id": "x"}, ClientKey("k"))
        assert record == FAQ(question="Q", answer="A")

    def test_bad_duration_becomes_zero(self):
        record = record_from_values(HighlightItem, {"videoDuration": "soon"}, ClientKey("k"))
        assert record.video_duration == 0

    def test_from_values_assigns_fresh_keys(self):
        faq = get_content_type("faq")
        first = faq.from_values({"question": "Q", "answer": "A"})
        second = faq.from_values({"question": "Q", "answer": "A"})
        assert first == second
        assert first.key != second.key


class TestSearchAndUploads:

    def test_searchable_text_skips_key_and_uploads(self):
        record = SectorItem(title="Retail", description="Shops", key=ClientKey("setors-abc"),
                            file=PendingUpload("secret-name.png", b"x"))
        texts = list(searchable_text(record))
        assert "Retail" in texts
        assert "Shops" in texts
        assert "setors-abc" not in texts
        assert all("secret-name" not in t for t in texts)

    def test_searchable_text_includes_list_entries(self):
        texts = list(searchable_text(HighlightItem(text_lists=("alpha", "beta"))))
        assert "alpha" in texts and "beta" in texts

    def test_pending_uploads_and_clear(self):
        upload = PendingUpload("clip.mp4", b"data", "video/mp4")
        record = HighlightItem(video_file=upload)

        assert pending_uploads(record) == [("video", upload)]
        assert pending_uploads(clear_uploads(record)) == []
        assert clear_uploads(FAQ(question="Q")) == FAQ(question="Q")


class TestTextLines:

    def test_add_text_line(self):
        assert add_text_line(HighlightItem()).text_lists == ("", "", "")

    def test_remove_text_line(self):
        record = HighlightItem(text_lists=("a", "b", "c"))
        assert remove_text_line(record, 1).text_lists == ("a", "c")

    def test_remove_last_text_line_keeps_one(self):
        assert remove_text_line(HighlightItem(text_lists=("a",)), 0).text_lists == ("",)
