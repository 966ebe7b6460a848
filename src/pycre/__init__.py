"""pyCRE — concept referring expressions over Horn-ALC knowledge bases.

Answers instance queries with concept descriptions that single out each
answer, built from its concepts and the role chains that connect it to
other individuals.

Public API::

    from pycre import KnowledgeBase, StructuralReasoner, retrieve_referring_expressions
    from pycre import Concept, parse_concept, ReferringExpressionRetrieval
"""

from pycre._version import __version__
from pycre.base import KnowledgeBase
from pycre.reasoner import Classification, OracleError, Reasoner
from pycre.retrieval import (
    CompletedExpression,
    ReferringExpressionRetrieval,
    RetrievalResult,
    retrieve_referring_expressions,
)
from pycre.structural import StructuralReasoner
from pycre.syntax import Concept, parse_concept

__all__ = [
    "__version__",
    "KnowledgeBase",
    "Reasoner",
    "Classification",
    "OracleError",
    "StructuralReasoner",
    "Concept",
    "parse_concept",
    "CompletedExpression",
    "ReferringExpressionRetrieval",
    "RetrievalResult",
    "retrieve_referring_expressions",
]
