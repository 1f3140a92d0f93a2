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
Tests for the SQLAlchemy backed statement executor
"""

import pytest
import pytest_asyncio

from wbschat.analytics.executor import QueryExecutor
from wbschat.config.settings import Database
from wbschat.db.session import DatabaseExecutor


@pytest_asyncio.fixture
async def executor(tmp_path):
    db = DatabaseExecutor(f"sqlite+aiosqlite:///{tmp_path / 'wbs.db'}")
    await db.execute_query(
        'CREATE TABLE "tasks" ("id" INTEGER PRIMARY KEY, "name" TEXT, "status" TEXT)'
    )
    for i, status in enumerate(["PENDING", "PENDING", "DONE", "PENDING"], start=1):
        await db.execute_query(
            f"INSERT INTO \"tasks\" (\"id\", \"name\", \"status\") "
            f"VALUES ({i}, 'task {i}', '{status}')"
        )
    yield db
    await db.dispose()


class TestDatabaseExecutor:
    def test_from_settings_requires_url(self):
        with pytest.raises(ValueError, match="database url"):
            DatabaseExecutor.from_settings(None)

    @pytest.mark.asyncio
    async def test_select_returns_dicts(self, executor):
        rows = await executor.execute_query(
            'SELECT "id", "name" FROM "tasks" WHERE "status" = \'DONE\''
        )
        assert rows == [{"id": 3, "name": "task 3"}]

    @pytest.mark.asyncio
    async def test_update_commits(self, executor):
        assert (
            await executor(
                'UPDATE "tasks" SET "status" = \'DONE\' WHERE "id" = 1'
            )
            == []
        )
        rows = await executor('SELECT "status" FROM "tasks" WHERE "id" = 1')
        assert rows == [{"status": "DONE"}]

    @pytest.mark.asyncio
    async def test_error_propagates(self, executor):
        with pytest.raises(Exception):
            await executor('SELECT * FROM "missing"')

    @pytest.mark.asyncio
    async def test_counted_execution(self, executor):
        result = await QueryExecutor(executor.execute_query).execute(
            'SELECT "id" FROM "tasks" WHERE "status" = \'PENDING\' '
            'ORDER BY "id" LIMIT 2'
        )
        assert [r["id"] for r in result.rows] == [1, 2]
        assert result.displayed_count == 2
        assert result.total_count == 3

    @pytest.mark.asyncio
    async def test_from_settings(self, tmp_path):
        db = DatabaseExecutor.from_settings(
            Database(url=f"sqlite+aiosqlite:///{tmp_path / 'other.db'}")
        )
        try:
            assert await db("SELECT 1 AS one") == [{"one": 1}]
        finally:
            await db.dispose()
