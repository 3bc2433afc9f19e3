"""LangGraph pipeline for batch exam generation.

    - build_exam_graph: ingest -> extract -> blueprint -> test -> solution
"""

from examgen_core.graph.build_exam_graph import ExamPipelineState, build_exam_graph

__all__ = [
    "ExamPipelineState",
    "build_exam_graph",
]
