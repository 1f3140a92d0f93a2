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
import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import uvicorn
from click import Choice
from rich import console, print as pp, table
from rich.markdown import Markdown
from typer import Argument, BadParameter, Option, Typer

from wbschat import log
from wbschat.analytics.assembler import PromptAssembler, RequestContext
from wbschat.analytics.orchestrator import PipelineOrchestrator
from wbschat.analytics.payload import extract
from wbschat.analytics.safety import SQLSafetyValidator
from wbschat.api.app import create_app
from wbschat.cli.config import tc
from wbschat.config import settings
from wbschat.config.prompts import PromptConfig
from wbschat.db.session import DatabaseExecutor
from wbschat.llm import create_llm_client

ty = Typer(context_settings=dict(help_option_names=["-h", "--help"]))

_LOG_LEVELS = list(logging.getLevelNamesMapping().keys())


def _validator(cfg: settings.Settings) -> SQLSafetyValidator:
    safety = cfg.safety or settings.Safety()
    return SQLSafetyValidator(
        writable_tables=safety.writable_tables,
        identifying_columns=safety.identifying_columns,
    )


@ty.command(name="run", help="Run the chat HTTP server")
def main(
    config_file: Annotated[
        Optional[Path],
        Option("-c", "--cfg", help="The config yaml for various options"),
    ] = None,
    log_to_file: Annotated[Optional[bool], Option(help="Log to file")] = False,
    enable_json_logging: Annotated[
        Optional[bool], Option(help="Enable JSON logs")
    ] = False,
    log_level: Annotated[
        Optional[str],
        Option(help="The log level", click_type=Choice(_LOG_LEVELS)),
    ] = "INFO",
    port: Annotated[Optional[int], Option(help="The port to listen on")] = 8000,
    host: Annotated[
        Optional[str],
        Option(help="Where uvicorn listens for requests"),
    ] = "127.0.0.1",
):
    log.configure(enable_json_logging=enable_json_logging, to_file=log_to_file)
    log.set_level(log_level)
    settings.configure(config_file)
    uvicorn.run(create_app(), host=host, port=port, log_level=log_level.lower())


async def _ask(
    message: str, project_id: Optional[str], user_id: Optional[str], persona: Optional[str]
):
    cfg = settings.instance()
    executor = DatabaseExecutor.from_settings(cfg.database)
    try:
        orchestrator = PipelineOrchestrator(
            llm=create_llm_client(cfg.llm),
            execute_query=executor.execute_query,
            validator=_validator(cfg),
            assembler=PromptAssembler(
                match_threshold=cfg.schema_hints.match_threshold
                if cfg.schema_hints
                else 0.85
            ),
        )
        return await orchestrator.process_message(
            message,
            RequestContext(user_id=user_id, project_id=project_id),
            PromptConfig.from_settings(cfg.prompts, persona),
        )
    finally:
        await executor.dispose()


@ty.command(name="ask", help="Answer one message through the full pipeline")
def ask(
    message: Annotated[str, Argument(help="The natural language message")],
    config_file: Annotated[
        Optional[Path],
        Option("-c", "--cfg", help="The config yaml for various options"),
    ] = None,
    project_id: Annotated[
        Optional[str], Option(help="The currently selected project id")
    ] = None,
    user_id: Annotated[Optional[str], Option(help="The asking user's id")] = None,
    persona: Annotated[
        Optional[str], Option(help="Persona prompt for the analysis step")
    ] = None,
    provider: Annotated[
        Optional[str],
        Option(
            help="Override the configured LLM provider",
            click_type=Choice([p.value for p in settings.LlmProvider]),
        ),
    ] = None,
    model: Annotated[
        Optional[str], Option(help="Override the configured model")
    ] = None,
    as_json: Annotated[bool, Option("--json", help="Print the raw response")] = False,
):
    log.configure()
    settings.configure(config_file)
    try:
        response = asyncio.run(
            settings.run_with(
                _ask,
                {"llm.provider": provider, "llm.model": model},
                args=[message, project_id, user_id, persona],
            )
        )
    except ValueError as e:
        raise BadParameter(str(e))

    if as_json:
        pp(response.to_dict())
        return

    con = console.Console()
    con.print(Markdown(response.content))
    if response.sql:
        con.print(f"[cyan]SQL:[/cyan] {response.sql}")
    if response.total_count is not None:
        con.print(f"rows: {response.displayed_count} of {response.total_count}")
    if response.chart_type is not None:
        con.print(f"chart: {response.chart_type.value}")
        if response.chart_data:
            pp(response.chart_data)
    if response.mindmap_data is not None:
        pp(response.mindmap_data)


@ty.command(name="validate", help="Check a SQL statement against the safety policy")
def validate(
    sql: Annotated[str, Argument(help="The SQL statement")],
    config_file: Annotated[
        Optional[Path],
        Option("-c", "--cfg", help="The config yaml for various options"),
    ] = None,
):
    settings.configure(config_file)
    verdict = _validator(settings.instance()).validate(sql)
    tab = table.Table("Valid", "Rule", "Reason", title="SQL verdict")
    tab.add_row(
        "[green]yes[/green]" if verdict.valid else "[red]no[/red]",
        verdict.rule or "",
        verdict.reason or "",
    )
    console.Console().print(tab)
    if not verdict.valid:
        sys.exit(1)


@ty.command(name="extract", help="Extract chart and mindmap directives from text")
def extract_payload(
    file: Annotated[
        Optional[Path],
        Argument(help="File with the model answer, reads stdin when omitted"),
    ] = None,
):
    text = file.read_text() if file is not None else sys.stdin.read()
    payload = extract(text)
    pp(
        {
            "content": payload.content,
            "chartType": payload.chart_type.value if payload.chart_type else None,
            "chartData": payload.chart_data,
            "mindmapData": payload.mindmap_data,
        }
    )


ty.add_typer(tc)


def cli():
    ty()


if __name__ == "__main__":
    cli()
