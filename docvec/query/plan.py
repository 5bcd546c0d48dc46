"""
Query plans and their lazy, pull-based execution.
Both the builder and the textual surface compile to a QueryPlan.
"""

from dataclasses import dataclass, field, replace
from itertools import islice
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..core.config import query_logging_enabled
from ..core.errors import DimensionMismatchError, QueryError, VectorError
from ..core.values import UNDEFINED
from ..util.logging import logger
from ..vector.near import select_top_k
from .expressions import Expression, Params


@dataclass(frozen=True)
class SortKey:
    expression: Expression
    descending: bool = False


@dataclass(frozen=True)
class Projection:
    expression: Expression
    alias: Optional[str] = None

    @property
    def name(self) -> str:
        return self.alias or self.expression.label()


@dataclass(frozen=True)
class QueryPlan:
    """
    Logical query: scan -> filter -> order -> limit -> project.

    A single ascending sort key with a limit runs through the bounded top-k
    selector; any other ordering is a full stable sort. Documents whose sort
    key is UNDEFINED are left out of ordered results.
    """

    collection: Optional[str] = None
    predicate: Optional[Expression] = None
    order_by: List[SortKey] = field(default_factory=list)
    limit: Optional[int] = None
    projection: Optional[List[Projection]] = None

    @property
    def strategy(self) -> str:
        if self.limit is not None and self.limit <= 0:
            return "empty"
        if len(self.order_by) == 1 and not self.order_by[0].descending and self.limit is not None:
            return "top_k"
        if self.order_by:
            return "sort"
        return "stream"

    def bind(self, params: Optional[Params] = None) -> "QueryPlan":
        """Substitute parameters and prepare operator calls for one execution."""
        return replace(
            self,
            predicate=self.predicate.bind(params) if self.predicate is not None else None,
            order_by=[SortKey(key.expression.bind(params), key.descending) for key in self.order_by],
            projection=(
                [Projection(p.expression.bind(params), p.alias) for p in self.projection]
                if self.projection is not None else None
            ),
        )

    def execute(self, source: Optional[Iterable[Dict[str, Any]]] = None, params: Optional[Params] = None) -> "Cursor":
        """
        Run the plan.

        Args:
            source: Documents to scan; defaults to the plan's collection in the store
            params: Values for ``@name`` parameters

        Returns:
            Cursor over the result documents
        """
        bound = self.bind(params)

        if source is None:
            if not self.collection:
                raise QueryError("Query has no collection and no document source")
            from ..core.dao import scan_collection
            source = scan_collection(self.collection)

        return Cursor(_Execution(bound, iter(source)))


def _sort_documents(documents: Iterable[Dict[str, Any]], order_by: List[SortKey]) -> List[Dict[str, Any]]:
    """Stable multi-key sort; documents with any UNDEFINED key are dropped."""
    keyed = []
    for document in documents:
        keys = [key.expression.evaluate(document) for key in order_by]
        if any(value is UNDEFINED or value is None for value in keys):
            continue
        keyed.append((keys, document))

    # One stable pass per key, least significant first
    try:
        for position in reversed(range(len(order_by))):
            keyed.sort(key=lambda entry: entry[0][position], reverse=order_by[position].descending)
    except TypeError as e:
        raise QueryError(f"ORDER BY values are not mutually comparable: {e}") from e
    return [document for _, document in keyed]


def _project(document: Dict[str, Any], projection: List[Projection]) -> Dict[str, Any]:
    row = {}
    for item in projection:
        value = item.expression.evaluate(document)
        if value is not UNDEFINED:
            row[item.name] = value
    return row


class _Execution:
    """Generator pipeline for one bound plan, with scan/emit accounting."""

    def __init__(self, plan: QueryPlan, source: Iterator[Dict[str, Any]]):
        self.plan = plan
        self.source = source
        self.scanned = 0
        self.emitted = 0
        self.finished = False

    def _scan(self) -> Iterator[Dict[str, Any]]:
        for document in self.source:
            self.scanned += 1
            yield document

    def _filtered(self) -> Iterator[Dict[str, Any]]:
        documents = self._scan()
        predicate = self.plan.predicate
        if predicate is None:
            return documents
        return (document for document in documents if predicate.matches(document))

    def _ordered(self) -> Iterator[Dict[str, Any]]:
        plan = self.plan
        strategy = plan.strategy
        documents = self._filtered()

        if strategy == "empty":
            return iter(())
        if strategy == "top_k":
            expression = plan.order_by[0].expression

            def key(document):
                value = expression.evaluate(document)
                return UNDEFINED if value is None else value
            try:
                ranked = select_top_k(documents, key, plan.limit)
            except VectorError:
                raise
            except TypeError as e:
                raise QueryError(f"ORDER BY values are not mutually comparable: {e}") from e
            return (document for _, document in ranked)
        if strategy == "sort":
            documents = iter(_sort_documents(documents, plan.order_by))
        if plan.limit is not None:
            documents = islice(documents, plan.limit)
        return documents

    def rows(self) -> Iterator[Dict[str, Any]]:
        status = "abandoned"
        details: Dict[str, Any] = {}
        try:
            for document in self._ordered():
                self.emitted += 1
                if self.plan.projection is not None:
                    yield _project(document, self.plan.projection)
                else:
                    yield document
            status = "completed"
        except DimensionMismatchError as e:
            status = "failed"
            details = {"error": str(e), "expected": e.expected, "actual": e.actual}
            raise
        except Exception as e:
            status = "failed"
            details = {"error": str(e)[:200]}
            raise
        finally:
            self.finished = True
            close = getattr(self.source, "close", None)
            if close is not None:
                close()
            if query_logging_enabled():
                details.update({
                    "collection": self.plan.collection,
                    "strategy": self.plan.strategy,
                    "scanned": self.scanned,
                    "emitted": self.emitted,
                })
                logger.log_query_operation("execute", status, details)


class Cursor:
    """
    Pull-based result sequence.

    Iterating advances the underlying scan one document at a time; closing
    the cursor (or leaving its ``with`` block) stops the scan and releases it.
    """

    def __init__(self, execution: _Execution):
        self._execution = execution
        self._rows = execution.rows()
        self.closed = False

    def __iter__(self) -> "Cursor":
        return self

    def __next__(self) -> Dict[str, Any]:
        if self.closed:
            raise StopIteration
        return next(self._rows)

    def fetchone(self) -> Optional[Dict[str, Any]]:
        return next(self, None)

    def fetchmany(self, size: int = 1) -> List[Dict[str, Any]]:
        return list(islice(self, size))

    def fetchall(self) -> List[Dict[str, Any]]:
        return list(self)

    @property
    def scanned(self) -> int:
        """Documents pulled from the source so far."""
        return self._execution.scanned

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._rows.close()

    def __enter__(self) -> "Cursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
