#
#  Copyright (C) 2017-2025 Dremio Corporation
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
#

import pytest
import yaml
from pydantic_core import ValidationError

from wbschat.config import settings
from wbschat.config.prompts import (
    DEFAULT_ANALYSIS_SYSTEM_PROMPT,
    DEFAULT_SQL_SYSTEM_PROMPT,
    PromptConfig,
)


def test_configure_with_no_file_works(mock_config_dir):
    s = settings.instance()
    assert settings.instance() is not None
    settings.configure(force=True)
    assert settings.instance() is not None
    assert settings.instance() is not s


def test_configure_creates_default_config(mock_config_dir):
    """Test that configure creates the default config file if it doesn't exist"""
    default_path = mock_config_dir / "wbschat" / "config.yaml"
    assert default_path == settings.default_config()
    assert not default_path.exists()
    settings.configure()
    assert default_path.exists()
    assert settings.instance() is not None and settings.instance().database is None


def test_write_and_reload_settings(mock_config_dir):
    settings.configure(force=True)
    settings._settings.set(
        settings.Settings.model_validate(
            {
                "llm": {"provider": "mistral", "api_key": "secret"},
                "database": {"url": "postgresql+asyncpg://u@localhost/wbs"},
                "safety": {"writable_tables": ["tasks"]},
            }
        )
    )
    settings.write_settings()
    assert settings.default_config().exists()

    settings.configure(force=True)
    s = settings.instance()
    assert s.llm.provider == settings.LlmProvider.mistral
    assert s.llm.api_key == "secret"
    assert s.database.url == "postgresql+asyncpg://u@localhost/wbs"
    assert s.safety.writable_tables == ["tasks"]


def test_write_settings_dry_run(mock_config_dir):
    inst = settings.Settings.model_validate({"llm": {"api_key": "k"}})
    out = settings.write_settings(inst=inst, dry_run=True)
    assert yaml.safe_load(out) == {"llm": {"api_key": "k"}}
    assert not settings.default_config().exists()


def test_api_key_from_file(tmp_path):
    key = tmp_path / "key.txt"
    key.write_text("from-file\n")
    llm = settings.Llm.model_validate({"api_key": f"@{key}"})
    assert llm.api_key == "from-file"


@pytest.mark.parametrize(
    "provider,model,expected",
    [
        ("gemini", None, "gemini-2.0-flash"),
        ("mistral", None, "mistral-small-latest"),
        ("mistral", "mistral-large-latest", "mistral-large-latest"),
    ],
)
def test_resolved_model(provider: str, model: str | None, expected: str):
    llm = settings.Llm.model_validate({"provider": provider, "model": model})
    assert llm.resolved_model == expected


def test_unknown_provider_rejected():
    with pytest.raises(ValidationError):
        settings.Llm.model_validate({"provider": "openai"})


def test_database_requires_url():
    with pytest.raises(ValidationError):
        settings.Database.model_validate({})


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("WBSCHAT_LLM__API_KEY", "env-key")
    monkeypatch.setenv("WBSCHAT_DATABASE__URL", "sqlite+aiosqlite:///:memory:")
    s = settings.Settings()
    assert s.llm.api_key == "env-key"
    assert s.database.url == "sqlite+aiosqlite:///:memory:"


def test_with_overrides():
    s = settings.Settings.model_validate({"llm": {"api_key": "a"}})
    s.with_overrides({"llm.api_key": "b", "llm.model": None})
    assert s.llm.api_key == "b"
    assert s.llm.model is None


@pytest.mark.asyncio
async def test_run_with_restores_settings(mock_settings_instance):
    async def current_key():
        return settings.instance().llm.api_key

    assert await settings.run_with(current_key, {"llm.api_key": "other"}) == "other"
    assert settings.instance().llm.api_key == "test-key"


class TestPromptConfig:
    def test_defaults(self):
        pc = PromptConfig.from_settings(None)
        assert pc.sql_prompt == DEFAULT_SQL_SYSTEM_PROMPT
        assert pc.analysis_prompt == DEFAULT_ANALYSIS_SYSTEM_PROMPT
        assert pc.analysis_system_prompt == DEFAULT_ANALYSIS_SYSTEM_PROMPT

    def test_overrides_and_persona(self):
        prompts = settings.Prompts(
            sql_system_prompt="sql", analysis_system_prompt="analysis"
        )
        pc = PromptConfig.from_settings(prompts, persona_prompt="You are a PM.")
        assert pc.sql_prompt == "sql"
        assert pc.analysis_system_prompt == "You are a PM.\n\nanalysis"

    def test_request_persona_wins(self):
        prompts = settings.Prompts(persona_system_prompt="configured")
        assert PromptConfig.from_settings(prompts).persona_prompt == "configured"
        assert (
            PromptConfig.from_settings(prompts, "request").persona_prompt == "request"
        )
