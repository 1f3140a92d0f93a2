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
Unit tests for prompt assembly
"""

import json
from datetime import date

import pytest

from wbschat.analytics.assembler import PromptAssembler, RequestContext
from wbschat.config import schema
from wbschat.config.prompts import DEFAULT_SQL_SYSTEM_PROMPT, PromptConfig


@pytest.fixture
def assembler():
    return PromptAssembler()


class TestTableSelection:
    def test_keyword_match_adds_core_tables(self, assembler):
        assert assembler.select_tables("대기중 태스크 몇 개야") == [
            "users",
            "projects",
            "tasks",
        ]

    def test_english_keywords(self, assembler):
        selected = assembler.select_tables("list open issues")
        assert "issues" in selected
        assert "users" in selected and "projects" in selected

    def test_mindmap_selects_wbs(self, assembler):
        assert "wbs_items" in assembler.select_tables("WBS 마인드맵 보여줘")

    def test_nothing_matched_sends_everything(self, assembler):
        assert assembler.select_tables("hello there") == list(schema.TABLES)

    def test_threshold(self):
        strict = PromptAssembler(match_threshold=1.01)
        assert strict.select_tables("태스크") == list(schema.TABLES)


class TestSqlPrompt:
    def test_project_filter(self, assembler):
        ctx = RequestContext(user_id="u-1", project_id="p-1", today=date(2025, 1, 10))
        built = assembler.build_sql_prompt("태스크 보여줘", ctx, PromptConfig())
        assert built.system_prompt == DEFAULT_SQL_SYSTEM_PROMPT
        assert "\"projectId\" = 'p-1'" in built.prompt
        assert "`u-1`" in built.prompt
        assert "2025-01-10" in built.prompt
        assert "## tasks" in built.prompt
        assert "## holidays" not in built.prompt
        assert built.prompt.rstrip().endswith("Write the SQL statement for the question above.")

    def test_no_project_warning(self, assembler):
        built = assembler.build_sql_prompt("태스크", RequestContext(), PromptConfig())
        assert "no project is selected" in built.prompt

    def test_custom_sql_prompt(self, assembler):
        built = assembler.build_sql_prompt(
            "hi", RequestContext(), PromptConfig(sql_prompt="custom")
        )
        assert built.system_prompt == "custom"


class TestAnalysisPrompt:
    def test_rows_and_truncation_hint(self, assembler):
        rows = [{"id": 1, "due": date(2025, 1, 1), "name": "설계"}]
        built = assembler.build_analysis_prompt(
            "q", 'SELECT * FROM "tasks"', rows, PromptConfig(), total_count=40
        )
        assert 'SELECT * FROM "tasks"' in built.prompt
        assert json.dumps(rows, indent=2, ensure_ascii=False, default=str) in built.prompt
        assert "Only 1 of 40 matching rows" in built.prompt

    def test_persona_in_front(self, assembler):
        prompts = PromptConfig(analysis_prompt="base", persona_prompt="persona")
        built = assembler.build_analysis_prompt("q", "SELECT 1", [], prompts)
        assert built.system_prompt == "persona\n\nbase"
        assert "Only" not in built.prompt

    def test_conversational(self, assembler):
        built = assembler.build_conversational_prompt("안녕 {x}", PromptConfig())
        assert "안녕 {x}" in built.prompt
