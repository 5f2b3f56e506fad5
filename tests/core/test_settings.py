"""Tests for core.settings module.

Covers:
- ListcraftSettings instantiation with defaults
- Environment variable override
- add_new_at validation
"""

import pytest
from pydantic import ValidationError

from listcraft.core.settings import ListcraftSettings


class TestListcraftSettingsDefaults:
    def test_default_position_column(self):
        assert ListcraftSettings().position_column == "position"

    def test_default_top_of_list(self):
        assert ListcraftSettings().top_of_list == 1

    def test_default_add_new_at(self):
        assert ListcraftSettings().add_new_at == "bottom"

    def test_default_database_url(self):
        assert ListcraftSettings().database_url == "sqlite:///listcraft.db"

    def test_default_logging(self):
        s = ListcraftSettings()
        assert s.log_level == "INFO"
        assert s.json_logs is None


class TestListcraftSettingsEnvOverride:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("LISTCRAFT_POSITION_COLUMN", "rank")
        monkeypatch.setenv("LISTCRAFT_TOP_OF_LIST", "0")
        s = ListcraftSettings()
        assert s.position_column == "rank"
        assert s.top_of_list == 0

    def test_json_logs_from_env(self, monkeypatch):
        monkeypatch.setenv("LISTCRAFT_JSON_LOGS", "true")
        assert ListcraftSettings().json_logs is True

    def test_unprefixed_variables_are_ignored(self, monkeypatch):
        monkeypatch.setenv("POSITION_COLUMN", "rank")
        assert ListcraftSettings().position_column == "position"


class TestAddNewAtValidation:
    @pytest.mark.parametrize("value, expected", [("TOP", "top"), (" Bottom ", "bottom"), ("none", "none")])
    def test_normalised(self, value, expected):
        assert ListcraftSettings(add_new_at=value).add_new_at == expected

    def test_rejects_unknown_placement(self):
        with pytest.raises(ValidationError):
            ListcraftSettings(add_new_at="middle")

    def test_rejects_non_integer_top(self, monkeypatch):
        monkeypatch.setenv("LISTCRAFT_TOP_OF_LIST", "first")
        with pytest.raises(ValidationError):
            ListcraftSettings()
