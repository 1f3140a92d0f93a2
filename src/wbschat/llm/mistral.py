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
from typing import Any, Dict, List, Optional, Union

from aiohttp import ClientError
from pydantic import BaseModel, ConfigDict, Field

import structlog

from wbschat.api.transport import AsyncHttpClient
from wbschat.llm.base import LLMError, wrap_error

logger = structlog.get_logger(__name__)

MISTRAL_URI = "https://api.mistral.ai/v1"


class Message(BaseModel):
    role: Optional[str] = None
    content: Optional[Union[str, List[Dict[str, Any]]]] = None
    model_config = ConfigDict(extra="ignore")

    @property
    def text(self) -> Optional[str]:
        if isinstance(self.content, str):
            return self.content
        if isinstance(self.content, list):
            chunks = [
                c.get("text") for c in self.content if isinstance(c.get("text"), str)
            ]
            return "".join(chunks) if chunks else None
        return None


class Choice(BaseModel):
    index: int = 0
    message: Optional[Message] = None
    finish_reason: Optional[str] = None
    model_config = ConfigDict(extra="ignore")


class ChatCompletionResponse(BaseModel):
    id: Optional[str] = None
    model: Optional[str] = None
    choices: List[Choice] = Field(default_factory=list)
    model_config = ConfigDict(extra="ignore")


class MistralClient(AsyncHttpClient):
    """Mistral chat completions API with separate system and user messages."""

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: Optional[float] = None,
        uri: str = MISTRAL_URI,
    ):
        self.model = model
        super().__init__(uri, token=api_key, timeout=timeout)

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response: ChatCompletionResponse = await self.post(
                "/chat/completions",
                body={"model": self.model, "messages": messages},
                deser=ChatCompletionResponse,
            )
        except (ClientError, asyncio.TimeoutError, RuntimeError) as e:
            raise wrap_error("mistral", e) from e

        if not response.choices or response.choices[0].message is None:
            raise LLMError("mistral returned no choices")
        if (result := response.choices[0].message.text) is None:
            raise LLMError("mistral returned no content")
        logger.debug("mistral_generated", model=self.model, length=len(result))
        return result
