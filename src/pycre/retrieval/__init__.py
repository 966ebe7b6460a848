"""Referring expression retrieval: restriction collection, hierarchy sorting,
individual profiling and recursive expression construction.
"""

from pycre.retrieval.builder import (
    ExpressionBuilder,
    ReferringExpressionRetrieval,
    RetrievalResult,
    retrieve_referring_expressions,
)
from pycre.retrieval.collector import RestrictionPool, collect_restrictions
from pycre.retrieval.context import OntologyContext
from pycre.retrieval.expression import CompletedExpression, ExpressionPart, InProgressExpression
from pycre.retrieval.nodes import ConceptGraph, ConceptNode
from pycre.retrieval.profiler import IndividualProfiler
from pycre.retrieval.sorter import PAIRWISE_LIMIT, HierarchySorter

__all__ = [
    "OntologyContext",
    "ConceptNode",
    "ConceptGraph",
    "HierarchySorter",
    "PAIRWISE_LIMIT",
    "RestrictionPool",
    "collect_restrictions",
    "IndividualProfiler",
    "ExpressionPart",
    "InProgressExpression",
    "CompletedExpression",
    "ExpressionBuilder",
    "ReferringExpressionRetrieval",
    "RetrievalResult",
    "retrieve_referring_expressions",
]
