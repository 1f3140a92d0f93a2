"""
Analytics Orchestrator - Chat Message Pipeline.

This module runs one chat message through the whole pipeline, from the
generated SQL to the final answer with its visualizations.
"""

import uuid
from typing import Any, Optional

import structlog

from wbschat.analytics.assembler import PromptAssembler, RequestContext
from wbschat.analytics.executor import ExecuteQuery, QueryExecutor
from wbschat.analytics.extractor import extract_sql
from wbschat.analytics.payload import extract
from wbschat.analytics.resolver import Resolver, VisualizationIntent
from wbschat.analytics.results import ChartType, PipelineResponse, truncation_note
from wbschat.analytics.safety import SQLSafetyValidator
from wbschat.analytics.tree import TreeSynthesizer
from wbschat.config.prompts import PromptConfig
from wbschat.llm.base import LLMClient

logger = structlog.get_logger(__name__)


class PipelineOrchestrator:
    """
    Main orchestrator for the chat pipeline.

    Flow:
    1. Assembler: SQL prompt from schema, context and message
    2. Generate SQL, or NO_SQL for small talk
    3. Safety gate: reject unsafe statements
    4. Execute, plus a best-effort row count for reads
    5. Generate the analysis of the rows
    6. Extract chart and mindmap directives
    7. Keep only the visualizations the user asked for, synthesizing a
       mindmap from the rows when a tree was requested but not returned

    Every failure is turned into a PipelineResponse; nothing is raised.
    """

    def __init__(
        self,
        llm: LLMClient,
        execute_query: ExecuteQuery,
        validator: Optional[SQLSafetyValidator] = None,
        assembler: Optional[PromptAssembler] = None,
        resolver: Optional[Resolver] = None,
        synthesizer: Optional[TreeSynthesizer] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            llm: Generation backend
            execute_query: Async callable running one SQL statement
            validator: Safety gate, defaults to the built-in policy
            assembler: Prompt builder
            resolver: Visualization intent detection
            synthesizer: Mindmap fallback builder
        """
        self.llm = llm
        self.executor = QueryExecutor(execute_query)
        self.validator = validator or SQLSafetyValidator()
        self.assembler = assembler or PromptAssembler()
        self.resolver = resolver or Resolver()
        self.synthesizer = synthesizer or TreeSynthesizer()

    async def process_message(
        self,
        message: str,
        context: Optional[RequestContext] = None,
        prompts: Optional[PromptConfig] = None,
    ) -> PipelineResponse:
        """
        Answer one chat message.

        Args:
            message: The user's message
            context: Calling context (user, project, date)
            prompts: System prompts, defaults to the built-in ones

        Returns:
            PipelineResponse
        """
        context = context or RequestContext()
        prompts = prompts or PromptConfig()
        trace_id = str(uuid.uuid4())
        sql = None

        logger.info(
            "chat_message_start",
            project_id=context.project_id,
            user_id=context.user_id,
            trace_id=trace_id,
        )

        try:
            sql_prompt = self.assembler.build_sql_prompt(message, context, prompts)
            try:
                raw = await self.llm.generate(
                    sql_prompt.prompt, sql_prompt.system_prompt
                )
            except Exception as e:
                logger.error("sql_generation_failed", error=str(e), trace_id=trace_id)
                return PipelineResponse(
                    content=f"The language model request failed: {e}"
                )

            sql = extract_sql(raw)
            if sql is None:
                logger.info("no_sql_needed", trace_id=trace_id)
                return await self._converse(message, prompts, trace_id)

            verdict = self.validator.validate(sql)
            if not verdict.valid:
                logger.warning(
                    "sql_rejected",
                    rule=verdict.rule,
                    reason=verdict.reason,
                    trace_id=trace_id,
                )
                return PipelineResponse(
                    content=f"SQL validation failed: {verdict.reason}\n\n"
                    "The generated query violates the safety policy.",
                    sql=sql,
                )
            logger.info("sql_validated", trace_id=trace_id)

            try:
                result = await self.executor.execute(sql)
            except Exception as e:
                logger.warning("sql_execution_failed", error=str(e), trace_id=trace_id)
                return PipelineResponse(
                    content=f"SQL execution error: {e}\n\nPlease check the query.",
                    sql=sql,
                )

            analysis_prompt = self.assembler.build_analysis_prompt(
                message, sql, result.rows, prompts, total_count=result.total_count
            )
            try:
                answer = await self.llm.generate(
                    analysis_prompt.prompt, analysis_prompt.system_prompt
                )
            except Exception as e:
                logger.error("analysis_failed", error=str(e), trace_id=trace_id)
                return PipelineResponse(
                    content=f"The language model request failed: {e}",
                    sql=sql,
                    total_count=result.total_count,
                    displayed_count=result.displayed_count,
                )

            response = self._assemble(
                answer,
                self.resolver.resolve(message),
                sql=sql,
                rows=result.rows,
                total_count=result.total_count,
                displayed_count=result.displayed_count,
            )
            logger.info(
                "chat_message_complete",
                rows=len(result.rows),
                chart_type=response.chart_type,
                has_mindmap=response.mindmap_data is not None,
                trace_id=trace_id,
            )
            return response

        except Exception as e:
            logger.error(
                "chat_message_failed", error=str(e), exc_info=True, trace_id=trace_id
            )
            return PipelineResponse(content=f"Unexpected error: {e}", sql=sql)

    async def _converse(
        self, message: str, prompts: PromptConfig, trace_id: str
    ) -> PipelineResponse:
        prompt = self.assembler.build_conversational_prompt(message, prompts)
        try:
            answer = await self.llm.generate(prompt.prompt, prompt.system_prompt)
        except Exception as e:
            logger.error("conversation_failed", error=str(e), trace_id=trace_id)
            return PipelineResponse(content=f"The language model request failed: {e}")

        return self._assemble(answer, self.resolver.resolve(message))

    def _assemble(
        self,
        answer: str,
        intent: VisualizationIntent,
        sql: Optional[str] = None,
        rows: Optional[list[dict[str, Any]]] = None,
        total_count: Optional[int] = None,
        displayed_count: Optional[int] = None,
    ) -> PipelineResponse:
        payload = extract(answer)

        chart_type = chart_data = mindmap_data = None
        if intent.wants_chart:
            chart_type, chart_data = payload.chart_type, payload.chart_data

        if intent.wants_tree:
            mindmap_data = payload.mindmap_data
            if mindmap_data is None and rows:
                if (root := self.synthesizer.synthesize(rows)) is not None:
                    logger.info("mindmap_synthesized", rows=len(rows))
                    mindmap_data = root.to_dict()

        if mindmap_data is not None:
            chart_type = ChartType.MINDMAP
        elif chart_type == ChartType.MINDMAP:
            chart_type = None

        return PipelineResponse(
            content=payload.content + truncation_note(total_count, displayed_count),
            sql=sql,
            chart_type=chart_type,
            chart_data=chart_data,
            mindmap_data=mindmap_data,
            total_count=total_count,
            displayed_count=displayed_count,
        )
