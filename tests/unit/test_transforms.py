"""
Unit tests for named value transforms.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from shipcomply.core.transforms import TRANSFORMS, apply_transform


class TestTransforms:
    """Tests for individual transforms"""

    @pytest.mark.parametrize(
        "name,value,expected",
        [
            ("trim", "  AB12  ", "AB12"),
            ("uppercase", "ab12", "AB12"),
            ("uppercase_no_spaces", "ab 123 456 us", "AB123456US"),
            ("lowercase", " USER@Example.COM ", "user@example.com"),
            ("remove_spaces", "12 34 56", "123456"),
            ("country_code", " us ", "US"),
            ("country_code", " Germany ", "Germany"),
            ("normalize_weight", "2.5KG", "2.5 kg"),
            ("normalize_weight", "10 Lbs", "10 lbs"),
            ("normalize_dimensions", "20x15*10CM", "20 x 15 x 10 cm"),
            ("normalize_dimensions", "20 x 15 x 10", "20 x 15 x 10"),
            ("normalize_decimal", "$1,250.50", "1250.5"),
            ("normalize_decimal", "120.00", "120"),
            ("currency_code", "$", "USD"),
            ("currency_code", "euros", "EUR"),
            ("currency_code", "chf", "CHF"),
        ],
    )
    def test_transform(self, name, value, expected):
        assert apply_transform(name, value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("15/04/2023", "2023-04-15"),
            ("15-4-23", "2023-04-15"),
            ("2023-04-15", "2023-04-15"),
            ("April 15, 2023", "2023-04-15"),
            ("15 Apr 2023", "2023-04-15"),
        ],
    )
    def test_normalize_date_iso(self, value, expected):
        assert apply_transform("normalize_date_iso", value) == expected

    def test_iso_date_is_not_reordered(self):
        """ISO dates are already normalized and must not be read day-first"""
        assert apply_transform("normalize_date_iso", "2024-01-02") == "2024-01-02"


class TestApplyTransform:
    """Tests for apply_transform fallbacks"""

    def test_no_transform(self):
        assert apply_transform(None, " raw ") == " raw "

    def test_custom_is_passthrough(self):
        assert apply_transform("custom", "anything") == "anything"

    def test_unknown_transform_returns_original(self):
        assert apply_transform("shout", "value") == "value"

    def test_failed_transform_returns_original(self):
        assert apply_transform("normalize_date_iso", "sometime soon") == "sometime soon"
        assert apply_transform("normalize_decimal", "n/a") == "n/a"

    def test_unparseable_weight_is_unchanged(self):
        assert apply_transform("normalize_weight", "heavy") == "heavy"

    @given(st.sampled_from(sorted(TRANSFORMS)), st.text(max_size=30))
    def test_property_transforms_never_raise(self, name, value):
        """Property: apply_transform always returns a string"""
        assert isinstance(apply_transform(name, value), str)
