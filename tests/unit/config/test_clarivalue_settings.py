"""Tests for ClariValue configuration loading."""

import pytest
from pydantic import ValidationError

from clarivalue.config import ClariValueConfig, get_settings
from clarivalue.domain.models.valuation import BusinessPattern


def write_yaml(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content)
    return path


def test_defaults():
    config = ClariValueConfig()

    assert config.remote.max_retries == 3
    assert config.remote.base_delay == 1.0
    assert config.remote.retry_policy == "transient"
    assert config.weighting.alphas() == {
        BusinessPattern.GROWTH: 0.3,
        BusinessPattern.CYCLICAL: 0.6,
        BusinessPattern.STABLE: 0.8,
    }
    assert config.aggregation.display_method_cap == 5


def test_from_yaml_substitutes_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("CV_TEST_URL", "https://analysis.example.com")
    monkeypatch.delenv("CV_TEST_MISSING_KEY", raising=False)
    path = write_yaml(
        tmp_path,
        """
remote:
  base_url: ${CV_TEST_URL}
  api_key: ${CV_TEST_MISSING_KEY:-anon}
  base_delay: 0.25
weighting:
  alpha_growth: 0.4
""",
    )

    config = ClariValueConfig.from_yaml(path)

    assert config.remote.base_url == "https://analysis.example.com"
    assert config.remote.api_key == "anon"
    assert config.remote.base_delay == 0.25
    assert config.weighting.alpha_growth == 0.4


def test_missing_environment_variable_without_default(tmp_path, monkeypatch):
    monkeypatch.delenv("CV_TEST_UNSET", raising=False)
    path = write_yaml(tmp_path, "remote:\n  api_key: ${CV_TEST_UNSET}\n")

    with pytest.raises(ValueError):
        ClariValueConfig.from_yaml(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        ClariValueConfig.from_yaml(tmp_path / "absent.yaml")


def test_get_settings_falls_back_to_defaults(tmp_path):
    config = get_settings(tmp_path / "absent.yaml")

    assert config.remote.extraction_function == "extract"


def test_empty_file_gives_defaults(tmp_path):
    assert ClariValueConfig.from_yaml(write_yaml(tmp_path, "")).weighting.default_pattern == "stable"


@pytest.mark.parametrize(
    "content",
    [
        "weighting:\n  alpha_stable: 1.5\n",
        "weighting:\n  alpha_growth: 0\n",
        "weighting:\n  default_pattern: seasonal\n",
        "remote:\n  retry_policy: sometimes\n",
        "aggregation:\n  display_method_cap: 0\n",
    ],
)
def test_invalid_values_rejected(tmp_path, content):
    with pytest.raises(ValidationError):
        ClariValueConfig.from_yaml(write_yaml(tmp_path, content))
