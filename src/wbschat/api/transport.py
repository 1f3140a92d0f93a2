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
from aiohttp import ClientSession, ClientResponse, ClientTimeout
from typing import (
    AnyStr,
    Callable,
    Optional,
    Dict,
    TypeAlias,
    Union,
    Any,
)
from json import loads
from pydantic import BaseModel, ValidationError

import structlog

logger = structlog.get_logger(__name__)

DeserializationStrategy: TypeAlias = Union[Callable, BaseModel]


class AsyncHttpClient:
    """JSON over HTTP. One session per call, no retries."""

    def __init__(
        self, uri: AnyStr, token: Optional[AnyStr] = None, timeout: Optional[float] = None
    ):
        self.uri = uri
        self.token = token
        self.timeout = ClientTimeout(total=timeout) if timeout else None
        self.headers = {"content-type": "application/json"}
        if token is not None:
            self.headers["Authorization"] = f"Bearer {token}"
        self.update_headers()

    def update_headers(self):
        pass

    async def deserialize(
        self,
        response: ClientResponse,
        deser: DeserializationStrategy,
        top_level_list: bool = False,
    ):
        js = await response.text()
        try:
            if isinstance(deser, type) and issubclass(deser, BaseModel):
                if top_level_list:
                    return [deser.model_validate(o) for o in loads(js)]
                return deser.model_validate_json(js)
            return loads(js, object_hook=deser)
        except ValidationError as e:
            logger.error(
                "response_validation_failed",
                method=response.request_info.method,
                url=str(response.request_info.url),
                errors=e.errors(),
            )
            raise RuntimeError(f"Unable to parse {e}, deser={deser}\n{e.errors()}")
        except Exception as e:
            logger.error(
                "response_parse_failed",
                method=response.request_info.method,
                url=str(response.request_info.url),
                error=str(e),
            )
            raise

    async def handle_response(
        self,
        response: ClientResponse,
        deser: DeserializationStrategy,
        top_level_list: bool = False,
    ):
        response.raise_for_status()
        return await self.deserialize(response, deser, top_level_list=top_level_list)

    def log_request(
        self, method: str, endpoint: str, params: Optional[Dict[AnyStr, Any]] = None
    ):
        sanitized_headers = {
            k: (v if k.lower() not in ("authorization", "x-goog-api-key") else "<redacted>")
            for k, v in self.headers.items()
        }
        logger.debug(
            "http_request",
            method=method,
            url=f"{self.uri}{endpoint}",
            headers=sanitized_headers,
            params=params,
        )

    async def get(
        self,
        endpoint: AnyStr,
        params: Dict[AnyStr, AnyStr] = None,
        deser: Optional[DeserializationStrategy] = None,
        top_level_list: bool = False,
    ):
        async with ClientSession(timeout=self.timeout) as session:
            self.log_request("GET", endpoint, params)
            async with session.get(
                f"{self.uri}{endpoint}", headers=self.headers, params=params
            ) as response:
                return await self.handle_response(
                    response, deser, top_level_list=top_level_list
                )

    async def post(
        self,
        endpoint: AnyStr,
        body: Optional[Dict[AnyStr, Any]] = None,
        deser: Optional[DeserializationStrategy] = None,
        params: Optional[Dict[AnyStr, AnyStr]] = None,
        top_level_list: bool = False,
    ):
        async with ClientSession(timeout=self.timeout) as session:
            self.log_request("POST", endpoint, params)
            async with session.post(
                f"{self.uri}{endpoint}", headers=self.headers, json=body, params=params
            ) as response:
                return await self.handle_response(
                    response, deser, top_level_list=top_level_list
                )
