"""
tests/test_config.py — YAML Configuration Loader
=================================================
"""

from __future__ import annotations

import pytest

from backoffice.config import load_config
from backoffice.constants import DEFAULT_TARGET_LANGUAGES


def _write(tmp_path, text: str):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "absent.yaml")

    def test_empty_file_gives_defaults(self, tmp_path):
        cfg = load_config(_write(tmp_path, ""))
        assert cfg.translation_provider == "mock"
        assert cfg.translation_batch_size == 50
        assert cfg.translation_request_delay == 0.05
        assert cfg.target_languages == DEFAULT_TARGET_LANGUAGES
        assert len(cfg.target_languages) == 30

    def test_translation_section(self, tmp_path):
        cfg = load_config(_write(tmp_path, """
translation:
  provider: OpenAI
  model: gpt-4o
  batch_size: 10
  request_delay: 0
  target_languages:
    - {code: fr, name: French}
    - de
"""))
        assert cfg.translation_provider == "openai"
        assert cfg.translation_model == "gpt-4o"
        assert cfg.translation_batch_size == 10
        assert cfg.translation_request_delay == 0
        assert [(l.code, l.name) for l in cfg.target_languages] == [("fr", "French"), ("de", "de")]

    @pytest.mark.parametrize("section", [
        "translation:\n  provider: deepl\n",
        "translation:\n  batch_size: 0\n",
        "translation:\n  request_delay: -1\n",
        "translation:\n  target_languages: fr\n",
        "translation:\n  target_languages: [fr, fr]\n",
        "translation:\n  target_languages: [{name: French}]\n",
    ])
    def test_invalid_values(self, tmp_path, section):
        with pytest.raises(ValueError):
            load_config(_write(tmp_path, section))

    def test_empty_language_list_is_allowed_at_load(self, tmp_path):
        cfg = load_config(_write(tmp_path, "translation:\n  target_languages: []\n"))
        assert cfg.target_languages == ()


def test_default_languages_are_unique():
    codes = [lang.code for lang in DEFAULT_TARGET_LANGUAGES]
    assert len(codes) == len(set(codes))
    assert {"fr", "en", "pt-BR", "pt-PT"} <= set(codes)
