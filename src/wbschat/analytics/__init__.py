"""
Chat analytics pipeline for the WBS project database.

This package contains the components of the pipeline:
- Assembler: Prompt building and schema grounding
- Extractor: SQL extraction from generation output
- Safety: SQL policy checks
- Executor: Statement and row count execution
- Payload: Chart and mindmap directive extraction
- Tree: Mindmap synthesis from flat rows
- Resolver: Visualization intent detection
- Results: Response assembly
"""

from .assembler import PromptAssembler, RequestContext
from .extractor import extract_sql
from .safety import SQLSafetyValidator, Verdict
from .executor import QueryExecutor, ExecutionResult
from .payload import ExtractedPayload, extract
from .tree import TreeSynthesizer, MindmapNode
from .resolver import Resolver, VisualizationIntent
from .results import ChartType, PipelineResponse
from .orchestrator import PipelineOrchestrator

__all__ = [
    "PromptAssembler",
    "RequestContext",
    "extract_sql",
    "SQLSafetyValidator",
    "Verdict",
    "QueryExecutor",
    "ExecutionResult",
    "ExtractedPayload",
    "extract",
    "TreeSynthesizer",
    "MindmapNode",
    "Resolver",
    "VisualizationIntent",
    "ChartType",
    "PipelineResponse",
    "PipelineOrchestrator",
]
