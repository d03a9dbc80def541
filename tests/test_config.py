# tests/test_config.py
"""
Tests for OracleConfig loading.
"""

import logging

import pytest

from resolve_oracle.config import OracleConfig


class TestDefaults:

    def test_defaults(self):
        config = OracleConfig()
        assert config.fail_fast is False
        assert config.std_prefix == "std::"
        assert config.parameter_prefix == "$"
        assert config.check_declarations_only is False
        assert config.validate() == []

    def test_sentinel_collision_warns(self):
        assert OracleConfig(parameter_prefix="!p").validate()

    def test_empty_prefix_warns(self):
        assert "std_prefix must not be empty" in OracleConfig(std_prefix="").validate()


class TestFromMapping:

    def test_dashed_keys(self):
        config = OracleConfig.from_mapping({"fail-fast": True, "std-prefix": "lib::"})
        assert config.fail_fast is True
        assert config.std_prefix == "lib::"

    def test_unknown_keys_ignored(self, caplog):
        with caplog.at_level(logging.WARNING, logger="resolve_oracle.config"):
            config = OracleConfig.from_mapping({"colour": "blue"})
        assert config == OracleConfig()
        assert "colour" in caplog.text

    @pytest.mark.parametrize("values", [
        {"fail_fast": "false"},
        {"check-declarations-only": 1},
        {"std_prefix": 1},
        {"parameter_prefix": None},
    ])
    def test_wrong_value_type(self, values):
        with pytest.raises(ValueError, match="must be a"):
            OracleConfig.from_mapping(values)


class TestFromFile:

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "oracle.yaml"
        path.write_text("fail_fast: true\nparameter_prefix: '@'\n", encoding="utf-8")
        config = OracleConfig.from_file(path)
        assert config.fail_fast is True
        assert config.parameter_prefix == "@"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert OracleConfig.from_file(path) == OracleConfig()

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- fail_fast\n", encoding="utf-8")
        with pytest.raises(ValueError):
            OracleConfig.from_file(path)

    def test_quoted_boolean(self, tmp_path):
        path = tmp_path / "quoted.yaml"
        path.write_text("fail_fast: \"false\"\n", encoding="utf-8")
        with pytest.raises(ValueError, match="fail_fast"):
            OracleConfig.from_file(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("fail_fast: [\n", encoding="utf-8")
        with pytest.raises(ValueError, match="invalid YAML"):
            OracleConfig.from_file(path)
