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
from wbschat.config.settings import Llm, LlmProvider
from wbschat.llm.base import LLMClient, LLMError
from wbschat.llm.gemini import GeminiClient
from wbschat.llm.mistral import MistralClient


def create_llm_client(llm: Llm) -> LLMClient:
    """Build the client for the configured provider."""
    if llm is None or not llm.api_key:
        raise ValueError("An LLM api_key must be configured")

    match llm.provider:
        case LlmProvider.gemini:
            return GeminiClient(llm.api_key, llm.resolved_model, timeout=llm.timeout)
        case LlmProvider.mistral:
            return MistralClient(llm.api_key, llm.resolved_model, timeout=llm.timeout)
    raise ValueError(f"Unsupported LLM provider: {llm.provider}")


__all__ = [
    "LLMClient",
    "LLMError",
    "GeminiClient",
    "MistralClient",
    "create_llm_client",
]
