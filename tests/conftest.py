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

"""
Global pytest fixtures for wbs-chat tests.
"""
import os
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Any, Optional
from unittest.mock import patch

import pytest
import structlog

from wbschat.config import settings


@pytest.fixture
def temp_config_dir():
    """Create a temporary directory for config files"""
    with TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def mock_config_dir(temp_config_dir):
    """Mock the home directory to use our temporary directory"""
    with patch.object(Path, "home", return_value=temp_config_dir):
        # Also patch XDG_CONFIG_HOME environment variable
        old_env = os.environ.get("XDG_CONFIG_HOME")
        os.environ["XDG_CONFIG_HOME"] = str(temp_config_dir)
        yield temp_config_dir
        # Restore original environment
        if old_env:
            os.environ["XDG_CONFIG_HOME"] = old_env
        else:
            os.environ.pop("XDG_CONFIG_HOME", None)


@pytest.fixture
def mock_settings_instance():
    """Create a mock settings instance with default values"""
    old_settings = settings._settings.get()
    try:
        settings._settings.set(
            settings.Settings.model_validate(
                {
                    "llm": {"provider": "mistral", "api_key": "test-key"},
                    "database": {"url": "sqlite+aiosqlite:///:memory:"},
                }
            )
        )
        yield settings.instance()
    finally:
        settings._settings.set(old_settings)


class ScriptedLLM:
    """Generation backend returning canned answers in order."""

    def __init__(self, *answers: Any):
        self.answers = list(answers)
        self.calls: list[tuple[str, Optional[str]]] = []

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        self.calls.append((prompt, system_prompt))
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture
def scripted_llm():
    return ScriptedLLM


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI binds structlog to the runner's streams; undo that after each test"""
    yield
    structlog.reset_defaults()
