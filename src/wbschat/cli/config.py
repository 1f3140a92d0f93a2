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
from typing import Annotated, List, Optional

from click import Choice
from rich import print as pp
from typer import Option, Typer
from yaml import dump

from wbschat import log
from wbschat.config import settings

tc = Typer(
    context_settings=dict(help_option_names=["-h", "--help"]),
    name="config",
    help="Configuration management",
)


@tc.command("list", help="Show default configuration, if it exists")
def show_default_config(
    show_filename: Annotated[
        bool, Option(help="Show the filename for default config file")
    ] = False,
):
    dc = settings.default_config()
    pp(f"Default config file: {dc!s} (exists = {dc.exists()!s})")
    if not show_filename:
        settings.configure(dc)
        pp(
            dump(
                settings.instance().model_dump(
                    exclude_none=True,
                    mode="json",
                    exclude_unset=True,
                    by_alias=True,
                ),
                allow_unicode=True,
            )
        )
    pp(f"Default log file: {log.get_log_file()!s}")


@tc.command("create", help="Create a default configuration file")
def create_default_config(
    api_key: Annotated[
        str,
        Option(
            help="The LLM API key. If it starts with @ then the rest is treated as a filename"
        ),
    ],
    database_url: Annotated[
        str,
        Option(help="SQLAlchemy async database url, e.g. postgresql+asyncpg://..."),
    ],
    provider: Annotated[
        str,
        Option(
            help="The LLM provider",
            click_type=Choice([p.value for p in settings.LlmProvider]),
        ),
    ] = settings.LlmProvider.gemini.value,
    model: Annotated[
        Optional[str], Option(help="The model name, defaults per provider")
    ] = None,
    writable_table: Annotated[
        Optional[List[str]],
        Option(help="Table INSERT/UPDATE may target; repeat for more than one"),
    ] = None,
    dry_run: Annotated[
        bool, Option(help="Dry run, do not overwrite the config file. Just print it")
    ] = False,
):
    llm = settings.Llm.model_validate(
        {"provider": provider, "api_key": api_key, "model": model}
    )
    database = settings.Database.model_validate({"url": database_url})
    settings.configure(settings.default_config(), force=True)
    settings.instance().llm = llm
    settings.instance().database = database
    if writable_table:
        settings.instance().safety = settings.Safety.model_validate(
            {"writable_tables": writable_table}
        )
    if (d := settings.write_settings(dry_run=dry_run)) is not None and dry_run:
        pp(d)
    elif not dry_run:
        pp(f"Created default config file: {settings.default_config()!s}")
