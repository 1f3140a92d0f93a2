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
Unit tests for the Gemini and Mistral generation clients
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiohttp import ClientResponseError

from wbschat.api.transport import AsyncHttpClient
from wbschat.config.settings import Llm
from wbschat.llm import (
    GeminiClient,
    LLMClient,
    LLMError,
    MistralClient,
    create_llm_client,
)
from wbschat.llm.gemini import GenerateContentResponse
from wbschat.llm.mistral import ChatCompletionResponse


def _http_error(status: int, message: str) -> ClientResponseError:
    return ClientResponseError(
        request_info=MagicMock(), history=(), status=status, message=message
    )


class TestGemini:
    def test_api_key_header(self):
        client = GeminiClient("g-key", "gemini-2.0-flash")
        assert client.headers["x-goog-api-key"] == "g-key"
        assert "Authorization" not in client.headers

    @pytest.mark.asyncio
    async def test_generate(self):
        client = GeminiClient("g-key", "gemini-2.0-flash")
        response = GenerateContentResponse.model_validate(
            {
                "candidates": [
                    {
                        "content": {
                            "role": "model",
                            "parts": [{"text": "SELECT "}, {"text": "1"}],
                        },
                        "finishReason": "STOP",
                    }
                ]
            }
        )
        with patch.object(
            AsyncHttpClient, "post", new=AsyncMock(return_value=response)
        ) as post:
            assert await client.generate("question", "system") == "SELECT 1"

        endpoint = post.await_args.args[0]
        body = post.await_args.kwargs["body"]
        assert endpoint == "/models/gemini-2.0-flash:generateContent"
        assert body == {
            "contents": [{"role": "user", "parts": [{"text": "system\n\nquestion"}]}]
        }

    @pytest.mark.asyncio
    async def test_without_system_prompt(self):
        client = GeminiClient("g-key", "m")
        response = GenerateContentResponse.model_validate(
            {"candidates": [{"content": {"parts": [{"text": "ok"}]}}]}
        )
        with patch.object(
            AsyncHttpClient, "post", new=AsyncMock(return_value=response)
        ) as post:
            await client.generate("question")
        assert post.await_args.kwargs["body"]["contents"][0]["parts"][0] == {
            "text": "question"
        }

    @pytest.mark.asyncio
    async def test_empty_candidates(self):
        client = GeminiClient("g-key", "m")
        with patch.object(
            AsyncHttpClient,
            "post",
            new=AsyncMock(return_value=GenerateContentResponse()),
        ):
            with pytest.raises(LLMError, match="no content"):
                await client.generate("question")

    @pytest.mark.asyncio
    async def test_http_error_is_wrapped(self):
        client = GeminiClient("g-key", "m")
        with patch.object(
            AsyncHttpClient,
            "post",
            new=AsyncMock(side_effect=_http_error(429, "Too Many Requests")),
        ):
            with pytest.raises(LLMError, match="gemini request failed: 429"):
                await client.generate("question")


class TestMistral:
    def test_bearer_token(self):
        client = MistralClient("m-key", "mistral-small-latest")
        assert client.headers["Authorization"] == "Bearer m-key"

    @pytest.mark.asyncio
    async def test_generate(self):
        client = MistralClient("m-key", "mistral-small-latest")
        response = ChatCompletionResponse.model_validate(
            {
                "id": "cmpl-1",
                "model": "mistral-small-latest",
                "choices": [
                    {
                        "index": 0,
                        "message": {"role": "assistant", "content": "NO_SQL"},
                        "finish_reason": "stop",
                    }
                ],
            }
        )
        with patch.object(
            AsyncHttpClient, "post", new=AsyncMock(return_value=response)
        ) as post:
            assert await client.generate("hello", "be brief") == "NO_SQL"

        assert post.await_args.args[0] == "/chat/completions"
        assert post.await_args.kwargs["body"] == {
            "model": "mistral-small-latest",
            "messages": [
                {"role": "system", "content": "be brief"},
                {"role": "user", "content": "hello"},
            ],
        }

    @pytest.mark.asyncio
    async def test_chunked_content(self):
        client = MistralClient("m-key", "m")
        response = ChatCompletionResponse.model_validate(
            {
                "choices": [
                    {
                        "message": {
                            "role": "assistant",
                            "content": [
                                {"type": "text", "text": "Hello "},
                                {"type": "text", "text": "there"},
                            ],
                        }
                    }
                ]
            }
        )
        with patch.object(
            AsyncHttpClient, "post", new=AsyncMock(return_value=response)
        ):
            assert await client.generate("hi") == "Hello there"

    @pytest.mark.asyncio
    async def test_no_choices(self):
        client = MistralClient("m-key", "m")
        with patch.object(
            AsyncHttpClient,
            "post",
            new=AsyncMock(return_value=ChatCompletionResponse()),
        ):
            with pytest.raises(LLMError, match="no choices"):
                await client.generate("hi")

    @pytest.mark.asyncio
    async def test_http_error_is_wrapped(self):
        client = MistralClient("m-key", "m")
        with patch.object(
            AsyncHttpClient,
            "post",
            new=AsyncMock(side_effect=_http_error(401, "Unauthorized")),
        ):
            with pytest.raises(LLMError, match="mistral request failed: 401"):
                await client.generate("hi")


class TestFactory:
    def test_gemini(self):
        client = create_llm_client(Llm(provider="gemini", api_key="k"))
        assert isinstance(client, GeminiClient)
        assert client.model == "gemini-2.0-flash"
        assert isinstance(client, LLMClient)

    def test_mistral_with_model(self):
        client = create_llm_client(
            Llm(provider="mistral", api_key="k", model="mistral-large-latest")
        )
        assert isinstance(client, MistralClient)
        assert client.model == "mistral-large-latest"

    def test_timeout(self):
        client = create_llm_client(Llm(provider="mistral", api_key="k", timeout=5))
        assert client.timeout.total == 5

    def test_missing_key(self):
        with pytest.raises(ValueError, match="api_key"):
            create_llm_client(Llm(provider="gemini"))

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported LLM provider"):
            create_llm_client(Llm.model_construct(provider="openai", api_key="x"))
