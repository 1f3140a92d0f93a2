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
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from wbschat.config.settings import Database

logger = structlog.get_logger(__name__)


class DatabaseExecutor:
    """
    Runs one SQL statement per call on an async SQLAlchemy engine.

    Each call runs in its own transaction, committed when the statement
    succeeds and rolled back when it raises.
    """

    def __init__(self, url: str, echo: bool = False, engine: Optional[AsyncEngine] = None):
        self.engine = engine or create_async_engine(url, echo=echo)

    @classmethod
    def from_settings(cls, database: Optional[Database]) -> "DatabaseExecutor":
        if database is None or not database.url:
            raise ValueError("A database url must be configured")
        return cls(database.url, echo=bool(database.echo))

    async def execute_query(self, sql: str) -> List[Dict[str, Any]]:
        async with self.engine.begin() as conn:
            result = await conn.exec_driver_sql(sql)
            if not result.returns_rows:
                logger.debug("statement_executed", rowcount=result.rowcount)
                return []
            return [dict(row._mapping) for row in result]

    __call__ = execute_query

    async def dispose(self):
        await self.engine.dispose()
