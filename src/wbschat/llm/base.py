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
import asyncio
from typing import Optional, Protocol, runtime_checkable

from aiohttp import ClientError, ClientResponseError


class LLMError(Exception):
    """A generation request failed or returned no usable text."""


@runtime_checkable
class LLMClient(Protocol):
    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        ...


def wrap_error(provider: str, e: Exception) -> LLMError:
    match e:
        case ClientResponseError():
            return LLMError(f"{provider} request failed: {e.status} {e.message}")
        case asyncio.TimeoutError():
            return LLMError(f"{provider} request timed out")
        case ClientError() | RuntimeError():
            return LLMError(f"{provider} request failed: {e}")
    return LLMError(f"{provider}: {e}")
