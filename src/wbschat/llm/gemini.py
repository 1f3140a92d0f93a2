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
from typing import List, Optional

from aiohttp import ClientError
from pydantic import BaseModel, ConfigDict, Field

import structlog

from wbschat.api.transport import AsyncHttpClient
from wbschat.llm.base import LLMError, wrap_error

logger = structlog.get_logger(__name__)

GEMINI_URI = "https://generativelanguage.googleapis.com/v1beta"


class Part(BaseModel):
    text: Optional[str] = None
    model_config = ConfigDict(extra="ignore")


class Content(BaseModel):
    parts: List[Part] = Field(default_factory=list)
    role: Optional[str] = None
    model_config = ConfigDict(extra="ignore")


class Candidate(BaseModel):
    content: Optional[Content] = None
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GenerateContentResponse(BaseModel):
    candidates: List[Candidate] = Field(default_factory=list)
    model_config = ConfigDict(extra="ignore")

    @property
    def text(self) -> Optional[str]:
        if not self.candidates or self.candidates[0].content is None:
            return None
        texts = [p.text for p in self.candidates[0].content.parts if p.text]
        return "".join(texts) if texts else None


class GeminiClient(AsyncHttpClient):
    """
    Gemini generateContent API. Gemini takes a single user turn here, so the
    system prompt is sent in front of the prompt.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: Optional[float] = None,
        uri: str = GEMINI_URI,
    ):
        self.api_key = api_key
        self.model = model
        super().__init__(uri, timeout=timeout)

    def update_headers(self):
        self.headers["x-goog-api-key"] = self.api_key

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        text = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        body = {"contents": [{"role": "user", "parts": [{"text": text}]}]}
        try:
            response: GenerateContentResponse = await self.post(
                f"/models/{self.model}:generateContent",
                body=body,
                deser=GenerateContentResponse,
            )
        except (ClientError, asyncio.TimeoutError, RuntimeError) as e:
            raise wrap_error("gemini", e) from e

        if (result := response.text) is None:
            raise LLMError("gemini returned no content")
        logger.debug("gemini_generated", model=self.model, length=len(result))
        return result
