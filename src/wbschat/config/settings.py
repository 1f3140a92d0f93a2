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
from pydantic import (
    Field,
    AfterValidator,
    BaseModel,
    ConfigDict,
)
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import (
    Optional,
    Annotated,
    Self,
    List,
    Dict,
    Any,
    Callable,
)
from enum import auto, StrEnum
from pathlib import Path
from yaml import safe_load, add_representer, dump
from contextvars import ContextVar
from os import environ
from importlib.util import find_spec


def _resolve_token_file(key: Optional[str]) -> Optional[str]:
    if key is None:
        return None
    return (
        Path(key[1:]).expanduser().read_text().strip() if key.startswith("@") else key
    )


class LlmProvider(StrEnum):
    gemini = auto()
    mistral = auto()


DEFAULT_MODELS = {
    LlmProvider.gemini: "gemini-2.0-flash",
    LlmProvider.mistral: "mistral-small-latest",
}


class Llm(BaseModel):
    provider: Optional[LlmProvider] = Field(default=LlmProvider.gemini)
    api_key: Annotated[Optional[str], AfterValidator(_resolve_token_file)] = None
    model: Optional[str] = Field(default=None)
    timeout: Optional[float] = Field(
        default=120.0, description="Request timeout in seconds for a single call"
    )
    model_config = ConfigDict(validate_assignment=True, use_enum_values=True)

    @property
    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODELS[LlmProvider(self.provider)]


class Database(BaseModel):
    url: str = Field(
        description="SQLAlchemy async URL, e.g. postgresql+asyncpg://user@host/db"
    )
    echo: Optional[bool] = False
    model_config = ConfigDict(validate_assignment=True)


class Prompts(BaseModel):
    sql_system_prompt: Optional[str] = Field(default=None)
    analysis_system_prompt: Optional[str] = Field(default=None)
    persona_system_prompt: Optional[str] = Field(default=None)
    model_config = ConfigDict(validate_assignment=True)


class Safety(BaseModel):
    writable_tables: Optional[List[str]] = Field(
        default=None,
        description="Tables INSERT/UPDATE may target. Defaults to the built-in list",
    )
    identifying_columns: Optional[List[str]] = Field(
        default=None,
        description="Columns an UPDATE ... WHERE clause must reference",
    )
    model_config = ConfigDict(validate_assignment=True)


class SchemaHints(BaseModel):
    match_threshold: Optional[float] = Field(
        default=0.85,
        description="Minimum keyword similarity (0-1) for a table to be hinted",
    )
    model_config = ConfigDict(validate_assignment=True)


class Settings(BaseSettings):
    llm: Optional[Llm] = Field(default_factory=Llm)
    database: Optional[Database] = Field(default=None)
    prompts: Optional[Prompts] = Field(default_factory=Prompts)
    safety: Optional[Safety] = Field(default_factory=Safety)
    schema_hints: Optional[SchemaHints] = Field(default_factory=SchemaHints)
    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        env_prefix="WBSCHAT_",
        extra="ignore",
        use_enum_values=True,
    )

    def with_overrides(self, overrides: Dict[str, Any]) -> Self:
        def set_values(aparts: List[str], value: Any, obj: Any):
            if len(aparts) == 1 and hasattr(obj, aparts[0]):
                setattr(obj, aparts[0], value)
            elif hasattr(obj, aparts[0]):
                set_values(aparts[1:], value, getattr(obj, aparts[0]))

        for aparts, value in [
            (attr.split("."), value)
            for attr, value in overrides.items()
            if value is not None
        ]:
            set_values(aparts, value, self)

        return self


_settings: ContextVar[Settings] = ContextVar("settings", default=None)


# the default config is ~/.config/wbschat/config.yaml, use it if it exists
def default_config() -> Path:
    _top = "wbschat"
    if (_top := find_spec(__name__)) and _top.name:
        _top = _top.name.split(".")[0]
    return (
        Path(environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
        / _top
        / "config.yaml"
    )


# configures the settings using the given config file and overwrites the global
# settings instance if force is True
def configure(cfg: str | Path = None, force=False) -> ContextVar[Settings]:
    global _settings
    if force and isinstance(_settings.get(), Settings):
        old = _settings.get()
        try:
            _settings.set(None)
            configure(cfg, force=False)
        except Exception:
            # don't replace the old if there is an issue setting the new value
            _settings.set(old)
            raise

    if isinstance(cfg, str):
        cfg = Path(cfg)

    if cfg is None:
        cfg = default_config()

    if not cfg.exists():
        cfg.parent.mkdir(parents=True, exist_ok=True)
        cfg.touch()

    with cfg.open() as f:
        s = safe_load(f)
        _settings.set(Settings.model_validate(s if s else {}))

    return _settings


# Get the current settings instance if one has been configured. If not try
# to configure it using the default config file. If that fails, create a new
# empty settings instance.
def instance() -> Settings | None:
    global _settings
    if not isinstance(_settings.get(), Settings):
        try:
            configure()  # use default config, if exists
        except FileNotFoundError:
            # no default config, create a new default one
            _settings.set(Settings())
    return _settings.get()


def get_settings() -> Settings:
    """FastAPI dependency returning the active settings."""
    return instance()


async def run_with(
    func: Callable,
    overrides: Optional[Dict[str, Any]] = None,
    args: Optional[List[Any]] = None,
    kw: Optional[Dict[str, Any]] = None,
) -> Any:
    global _settings
    tok = _settings.set(
        instance().model_copy(deep=True).with_overrides(overrides or {})
    )
    try:
        return await func(*(args or []), **(kw or {}))
    finally:
        _settings.reset(tok)


def write_settings(
    cfg: Path = None, inst: Settings = None, dry_run: bool = False
) -> str | None:
    if cfg is None:
        cfg = default_config()

    if not isinstance(inst, Settings):
        inst = instance()

    d = inst.model_dump(
        exclude_none=True, mode="json", exclude_unset=True, by_alias=True
    )
    add_representer(
        str,
        lambda dumper, data: dumper.represent_scalar(
            "tag:yaml.org,2002:str", data, style=('"' if "@" in data else None)
        ),
    )
    if dry_run:
        return dump(d)

    if not cfg.exists() or not cfg.parent.exists():
        cfg.parent.mkdir(parents=True, exist_ok=True)

    with cfg.open("w") as f:
        dump(d, f)
