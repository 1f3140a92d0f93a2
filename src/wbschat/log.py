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
import logging
import sys
from os import environ
from pathlib import Path
from typing import Optional, TextIO

import structlog

_log_file: Optional[Path] = None
_stream: Optional[TextIO] = None


def get_log_directory() -> Path:
    return (
        Path(environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
        / "wbschat"
    )


def get_log_file() -> Optional[Path]:
    return _log_file


def configure(enable_json_logging: bool = False, to_file: bool = False) -> None:
    global _log_file, _stream

    if to_file:
        _log_file = get_log_directory() / "wbschat.log"
        _log_file.parent.mkdir(parents=True, exist_ok=True)
        _stream = _log_file.open("a")
    else:
        _log_file = None
        _stream = sys.stderr

    renderer = (
        structlog.processors.JSONRenderer()
        if enable_json_logging
        else structlog.dev.ConsoleRenderer(colors=not to_file and sys.stderr.isatty())
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(file=_stream),
        cache_logger_on_first_use=False,
    )


def set_level(level: str | int) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level {level}")
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))
