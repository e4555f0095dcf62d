"""
Data Processing Pipeline

Components for ingesting graph exports and writing reports.
"""

from warmpath.pipeline.ingest import load_graph_export, GraphExport
from warmpath.pipeline.outputs import OutputGenerator

__all__ = [
    "load_graph_export",
    "GraphExport",
    "OutputGenerator",
]
