"""Construction of concept referring expressions.

Given a query concept Q, every individual that is an answer to Q gets one or
more *referring expressions*: concepts that describe it uniquely, built from
its most specific concepts and from the existential restrictions that chain
it to other individuals.

``ExpressionBuilder.construct`` works on a group of individuals that share
a concept C and walks outwards from C:

1. Select the existential restrictions ``∃R.D`` entailed by C that are
   minimal under role-concept subsumption (same role, more specific filler).
2. Fuse each with the universal constraint ``∀R.E`` entailed by C for its
   role, giving ``∃R.(D ⊓ E)``.
3. Drop restrictions whose role and filler duplicate an earlier one.
4. On the first step, skip restrictions already witnessed by an asserted
   role successor of the individual.
5. On later steps, a restriction already used on the current path closes a
   cycle and is not expanded again.
6. If C ⊑ Q the expression built so far is an answer.
7. Recurse into the filler of every remaining restriction.

``ReferringExpressionRetrieval`` wires the pieces together: it collects and
sorts the restriction pools, profiles the individuals, groups them by
profile and role assertions, and runs the builder once per group.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from pycre.base import KnowledgeBase
from pycre.reasoner import Reasoner
from pycre.retrieval.collector import RestrictionPool, collect_restrictions
from pycre.retrieval.context import OntologyContext
from pycre.retrieval.expression import CompletedExpression, InProgressExpression
from pycre.retrieval.nodes import ConceptGraph, ConceptNode
from pycre.retrieval.profiler import IndividualProfiler
from pycre.retrieval.sorter import PAIRWISE_LIMIT, HierarchySorter
from pycre.syntax import Concept, as_concept, make_all, make_conj

logger = logging.getLogger(__name__)


class ExpressionBuilder:
    """Recursive construction of referring expressions for one query.

    Parameters:
        context: The ontology context.
        pool: The collected restrictions.
        query: The query concept.
        sorted_pool: Whether *pool* has been sorted by subsumption. Without
            sorting, every restriction in the pool is checked and minimality
            is enforced pairwise.
    """

    def __init__(
        self,
        context: OntologyContext,
        pool: RestrictionPool,
        query: Concept,
        *,
        sorted_pool: bool = True,
    ) -> None:
        self.ctx = context
        self.pool = pool
        self.query = query
        self.sorted_pool = sorted_pool

    def construct(
        self,
        current: Concept,
        expr: InProgressExpression,
        used: frozenset[Concept],
    ) -> set[CompletedExpression]:
        """Referring expressions for the base individuals of *expr*, continuing from *current*."""
        results: set[CompletedExpression] = set()

        candidates = self.select_candidates(current)
        constraints = {
            role: self.role_constraint(current, role)
            for role in sorted({c.role for c in candidates})  # type: ignore[type-var]
        }

        next_restrictions: list[Concept] = []
        for candidate in candidates:
            combined = self.ctx.combine(candidate, constraints[candidate.role])  # type: ignore[index]
            assert combined.sub is not None, f"malformed restriction {combined}"

            if not self.ctx.has_no_equivalent(combined, next_restrictions):
                continue
            if expr.is_empty:
                individual = min(expr.base_individuals)
                if self.ctx.role_assertion_present(combined.role, individual, combined.sub):  # type: ignore[arg-type]
                    logger.debug("%s is asserted for %s, skipping", combined, individual)
                    continue
                next_restrictions.append(combined)
            elif combined in used:
                part = expr.find_part(combined)
                if part is not None:
                    expr.mark_cycle(part)
            else:
                next_restrictions.append(combined)

        if self.ctx.is_subclass(current, self.query):
            completed = expr.complete()
            logger.debug("Completed: %s", ", ".join(c.text for c in completed))
            results.update(completed)

        for restriction in next_restrictions:
            results |= self.construct(
                restriction.sub,  # type: ignore[arg-type]
                expr.extended(restriction),
                used | {restriction},
            )
        return results

    # ------------------------------------------------------------------
    # Candidate selection
    # ------------------------------------------------------------------

    def select_candidates(self, current: Concept) -> list[Concept]:
        """Existential restrictions entailed by *current* that are minimal under role-concept subsumption."""
        graph = self.pool.existentials
        candidates: list[Concept] = []
        if self.sorted_pool:
            for node in self._entailed_nodes(current, graph, graph.roots, set()):
                for restriction in node.concepts:
                    self.ctx.add_if_minimal(candidates, restriction)
        else:
            for restriction in graph.concepts():
                if self.ctx.is_subclass(current, restriction):
                    self.ctx.add_if_minimal(candidates, restriction)
        candidates.sort(key=str)
        logger.debug("Candidates for %s: %s", current, ", ".join(str(c) for c in candidates))
        return candidates

    def _entailed_nodes(
        self,
        current: Concept,
        graph: ConceptGraph,
        nodes: list[ConceptNode],
        visited: set[int],
    ) -> list[ConceptNode]:
        """Nodes entailed by *current*, descending only below entailed nodes."""
        found: list[ConceptNode] = []
        for node in nodes:
            if node.index in visited:
                continue
            visited.add(node.index)
            if self.ctx.is_subclass(current, node.concept):
                found.append(node)
                found.extend(self._entailed_nodes(current, graph, graph.subs(node), visited))
        return found

    # ------------------------------------------------------------------
    # Universal constraints
    # ------------------------------------------------------------------

    def role_constraint(self, current: Concept, role: str) -> Concept | None:
        """``∀role.E`` for the most specific fillers E with ``current ⊑ ∀role.E``, or None."""
        graph = self.pool.universals.get(role)
        if graph is None or not len(graph):
            return None
        fillers: list[Concept] = []
        if self.sorted_pool:
            fillers = self._most_specific_fillers(current, role, graph, graph.roots, {})
        else:
            for filler in graph.concepts():
                if self.ctx.is_subclass(current, make_all(role, filler)):
                    self.ctx.add_if_most_specific(fillers, filler)
        return OntologyContext.universal(role, fillers)

    def _most_specific_fillers(
        self,
        current: Concept,
        role: str,
        graph: ConceptGraph,
        nodes: list[ConceptNode],
        memo: dict[int, list[Concept]],
    ) -> list[Concept]:
        fillers: list[Concept] = []
        for node in nodes:
            if node.index not in memo:
                if self.ctx.is_subclass(current, make_all(role, node.concept)):
                    below = self._most_specific_fillers(current, role, graph, graph.subs(node), memo)
                    memo[node.index] = below or [node.concept]
                else:
                    memo[node.index] = []
            for filler in memo[node.index]:
                if filler not in fillers:
                    fillers.append(filler)
        return fillers


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


@dataclass
class RetrievalResult:
    """Result of a referring expression retrieval.

    Attributes:
        query: The query concept.
        expressions: The referring expressions found.
        individual_groups: Number of distinct most-specific concept sets.
        max_group_size: Individuals in the largest such group.
        average_group_size: Average individuals per group.
        oracle_calls: Oracle questions asked during the retrieval.
    """

    query: Concept
    expressions: set[CompletedExpression] = field(default_factory=set)
    individual_groups: int = 0
    max_group_size: int = 0
    average_group_size: float = 0.0
    oracle_calls: int = 0

    def sorted_expressions(self) -> list[CompletedExpression]:
        """Expressions ordered by length, then text."""
        return sorted(self.expressions, key=lambda e: (len(e.text), e.text))

    def depth_histogram(self) -> dict[int, int]:
        """Number of expressions per count of inverse role steps."""
        return dict(sorted(Counter(e.depth for e in self.expressions).items()))

    def cycle_histogram(self) -> dict[int, int]:
        """Number of expressions per count of cycles."""
        return dict(sorted(Counter(e.cycle_count for e in self.expressions).items()))


class ReferringExpressionRetrieval:
    """Retrieves referring expressions for query concepts.

    Parameters:
        kb: The knowledge base.
        reasoner: A reasoner bound to *kb*.
        apply_sort: Sort the restriction pools by subsumption first (default True).
        pairwise_limit: Pool size from which sorting uses bulk classification.
    """

    def __init__(
        self,
        kb: KnowledgeBase,
        reasoner: Reasoner,
        *,
        apply_sort: bool = True,
        pairwise_limit: int = PAIRWISE_LIMIT,
    ) -> None:
        self.kb = kb
        self.reasoner = reasoner
        self.apply_sort = apply_sort
        self.pairwise_limit = pairwise_limit

    def retrieve(self, query: Concept | str) -> RetrievalResult:
        """Referring expressions for every answer to *query*."""
        q = as_concept(query)
        ctx = OntologyContext(self.kb, self.reasoner)

        pool = collect_restrictions(ctx)
        if self.apply_sort:
            pool.sort(HierarchySorter(ctx, pairwise_limit=self.pairwise_limit))

        profiles = IndividualProfiler(ctx, pool.universals).profile(self.kb.individuals)
        groups: dict[frozenset[Concept], list[str]] = {}
        for individual in sorted(profiles):
            groups.setdefault(frozenset(profiles[individual]), []).append(individual)

        builder = ExpressionBuilder(ctx, pool, q, sorted_pool=self.apply_sort)
        expressions: set[CompletedExpression] = set()
        for concepts, members in sorted(groups.items(), key=lambda item: item[1]):
            current = make_conj(concepts)
            by_relations: dict[frozenset[tuple[str, str]], list[str]] = {}
            for individual in members:
                by_relations.setdefault(self.kb.role_assertions_from(individual), []).append(individual)
            for subgroup in sorted(by_relations.values()):
                logger.debug("Constructing from %s for %s", current, ", ".join(subgroup))
                expressions |= builder.construct(current, InProgressExpression(frozenset(subgroup)), frozenset())

        sizes = [len(members) for members in groups.values()]
        result = RetrievalResult(
            query=q,
            expressions=expressions,
            individual_groups=len(groups),
            max_group_size=max(sizes, default=0),
            average_group_size=sum(sizes) / len(sizes) if sizes else 0.0,
            oracle_calls=ctx.oracle_calls,
        )
        logger.info(
            "Retrieved %d referring expressions for %s (%d oracle calls)",
            len(expressions), q, ctx.oracle_calls,
        )
        return result


def retrieve_referring_expressions(
    kb: KnowledgeBase,
    reasoner: Reasoner,
    query: Concept | str,
    *,
    apply_sort: bool = True,
) -> set[CompletedExpression]:
    """Referring expressions for every answer to *query* over *kb*."""
    return ReferringExpressionRetrieval(kb, reasoner, apply_sort=apply_sort).retrieve(query).expressions
