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
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wbschat.api import chat_endpoints


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        yield
    finally:
        for executor in list(chat_endpoints._executors.values()):
            await executor.dispose()
        chat_endpoints._executors.clear()


def create_app() -> FastAPI:
    app = FastAPI(title="wbs-chat", lifespan=lifespan)
    app.include_router(chat_endpoints.router)
    return app
