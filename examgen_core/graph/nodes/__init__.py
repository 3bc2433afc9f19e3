"""Pipeline nodes.

    - ingest: PDF loading and file-type checks
    - extract: reading-order text and page rasters
    - generate: blueprint, test and solution stages
"""

from examgen_core.graph.nodes import extract, generate, ingest

__all__ = ["extract", "generate", "ingest"]
