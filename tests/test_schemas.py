import pytest
from pydantic import ValidationError

from atlas_watch.schemas import (
    ClaimDraft, ClaimType, ContradictionVerdict, NotificationPreferences, RawArticle, VerdictLevel,
)


class TestRawArticle:
    def test_required_fields_are_stripped(self):
        article = RawArticle(title="  3I/ATLAS update ", url=" https://wire.test/a ", source=" Wire ")
        assert (article.title, article.url, article.source) == ("3I/ATLAS update", "https://wire.test/a", "Wire")

    @pytest.mark.parametrize("field", ["title", "url", "source"])
    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_blank_or_missing_value_rejected(self, field, value):
        data = {"title": "t", "url": "https://wire.test/a", "source": "Wire", field: value}
        with pytest.raises(ValidationError, match="must not be empty"):
            RawArticle(**data)


class TestClaimDraft:
    def test_type_is_case_and_space_insensitive(self):
        draft = ClaimDraft(text=" Hyperbolic orbit ", type=" Trajectory ", confidence=0.5)
        assert draft.type is ClaimType.TRAJECTORY
        assert draft.text == "Hyperbolic orbit"

    def test_blank_text_rejected(self):
        with pytest.raises(ValidationError, match="claim text must not be empty"):
            ClaimDraft(text="   ", type="trajectory", confidence=0.5)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            ClaimDraft(text="x", type="astrology", confidence=0.5)


class TestContradictionVerdict:
    def test_level_is_normalized(self):
        verdict = ContradictionVerdict(is_contradictory=True, contradiction_level=" MAJOR ")
        assert verdict.contradiction_level is VerdictLevel.MAJOR


class TestQuietHours:
    def test_empty_string_means_unset(self):
        prefs = NotificationPreferences(user_id=1, do_not_disturb_start="", do_not_disturb_end="07:00")
        assert prefs.do_not_disturb_start is None
        assert prefs.do_not_disturb_end == "07:00"

    @pytest.mark.parametrize("value", ["25:00", "7:00", "noon"])
    def test_malformed_times_rejected(self, value):
        with pytest.raises(ValidationError):
            NotificationPreferences(user_id=1, do_not_disturb_start=value)
