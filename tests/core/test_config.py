"""Tests for ListConfiguration and PlacementPolicy."""

from __future__ import annotations

import pytest

from listcraft import (
    WHOLE_TABLE,
    ForeignKeyEquality,
    InvalidConfigError,
    ListConfiguration,
    ListcraftSettings,
    PlacementPolicy,
)


class TestPlacementPolicy:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("top", PlacementPolicy.TOP),
            ("BOTTOM", PlacementPolicy.BOTTOM),
            (" none ", PlacementPolicy.NONE),
            (None, PlacementPolicy.NONE),
            (PlacementPolicy.TOP, PlacementPolicy.TOP),
        ],
    )
    def test_coerce(self, value, expected):
        assert PlacementPolicy.coerce(value) is expected

    @pytest.mark.parametrize("value", ["middle", 1, True])
    def test_coerce_rejects(self, value):
        with pytest.raises(InvalidConfigError):
            PlacementPolicy.coerce(value)


class TestListConfiguration:
    def test_defaults(self):
        config = ListConfiguration()
        assert config.position_column == "position"
        assert config.scope is WHOLE_TABLE
        assert config.top_of_list == 1
        assert config.placement is PlacementPolicy.BOTTOM

    def test_placement_string_is_coerced(self):
        assert ListConfiguration(placement="top").placement is PlacementPolicy.TOP
        assert ListConfiguration(placement=None).placement is PlacementPolicy.NONE

    @pytest.mark.parametrize("column", ["", None, 3])
    def test_invalid_position_column(self, column):
        with pytest.raises(InvalidConfigError):
            ListConfiguration(position_column=column)

    @pytest.mark.parametrize("top", ["1", 1.5, True])
    def test_invalid_top_of_list(self, top):
        with pytest.raises(InvalidConfigError):
            ListConfiguration(top_of_list=top)

    def test_is_immutable(self):
        config = ListConfiguration()
        with pytest.raises(AttributeError):
            config.top_of_list = 3

    def test_with_overrides(self):
        base = ListConfiguration(scope=ForeignKeyEquality("todo_list_id"))
        changed = base.with_overrides(placement="top", top_of_list=0)

        assert changed.placement is PlacementPolicy.TOP
        assert changed.top_of_list == 0
        assert changed.scope == ForeignKeyEquality("todo_list_id")
        assert base.placement is PlacementPolicy.BOTTOM

    def test_with_no_overrides_returns_self(self):
        config = ListConfiguration()
        assert config.with_overrides() is config

    def test_with_unknown_override(self):
        with pytest.raises(InvalidConfigError, match="add_new_at"):
            ListConfiguration().with_overrides(add_new_at="top")

    def test_scope_is_validated_lazily(self):
        assert ListConfiguration(scope=1).scope == 1


class TestFromSettings:
    def test_uses_settings_defaults(self):
        settings = ListcraftSettings(position_column="rank", top_of_list=0, add_new_at="top")
        config = ListConfiguration.from_settings(settings)

        assert config.position_column == "rank"
        assert config.top_of_list == 0
        assert config.placement is PlacementPolicy.TOP

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("LISTCRAFT_ADD_NEW_AT", "none")
        assert ListConfiguration.from_settings().placement is PlacementPolicy.NONE

    def test_overrides_win(self):
        settings = ListcraftSettings(top_of_list=0)
        config = ListConfiguration.from_settings(settings, top_of_list=10)
        assert config.top_of_list == 10
