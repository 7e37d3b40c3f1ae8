import pytest

from atlas_watch.news.credibility import score
from atlas_watch.schemas import Category


class TestScore:
    def test_speculation_penalty(self):
        assert score(0.80, Category.SPECULATION) == 0.56

    def test_discovery_boost_is_capped(self):
        assert score(0.99, Category.SCIENTIFIC_DISCOVERY) == 1.0

    def test_other_category_unchanged(self):
        assert score(0.50, Category.OTHER) == 0.5

    def test_discovery_boost(self):
        assert score(0.55, Category.SCIENTIFIC_DISCOVERY) == 0.61  # 0.605 rounds up

    def test_debunking_boost_and_cap(self):
        assert score(0.80, Category.DEBUNKING) == 0.84
        assert score(0.98, Category.DEBUNKING) == 1.0

    def test_speculation_floor(self):
        assert score(0.10, Category.SPECULATION) == 0.10
        assert score(0.0, Category.SPECULATION) == 0.10

    def test_half_up_at_boundary(self):
        assert score(0.125, Category.OTHER) == 0.13
        assert score(0.135, Category.TRAJECTORY) == 0.14
        assert score(0.15, Category.SPECULATION) == 0.11  # 0.105

    def test_unknown_prior_defaults_to_half(self):
        assert score(None, Category.OTHER) == 0.5
        assert score(None, Category.SPECULATION) == 0.35

    def test_out_of_range_prior_is_clamped(self):
        assert score(1.7, Category.OTHER) == 1.0
        assert score(-0.3, Category.OTHER) == 0.0

    def test_accepts_plain_string_category(self):
        assert score(0.80, "speculation") == 0.56

    @pytest.mark.parametrize("category", list(Category))
    @pytest.mark.parametrize("prior", [0.0, 0.01, 0.333, 0.5, 0.905, 0.999, 1.0])
    def test_always_within_unit_interval(self, prior, category):
        value = score(prior, category)
        assert 0.0 <= value <= 1.0
        assert round(value, 2) == value
