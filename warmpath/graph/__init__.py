"""
Graph Access

Data provider contract, in-memory provider, and the bidirectional graph service.
"""

from warmpath.graph.provider import DataProvider, InMemoryDataProvider
from warmpath.graph.service import GraphService, merge_bidirectional

__all__ = [
    "DataProvider",
    "InMemoryDataProvider",
    "GraphService",
    "merge_bidirectional",
]
