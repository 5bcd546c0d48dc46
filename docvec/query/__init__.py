"""
Expression language, query plans and the builder/textual query surfaces.
"""

from .expressions import And, Call, Comparison, Expression, Field, Literal, Not, Or, Parameter
from .operators import VECTOR_DISTANCE, NamedOperator, OperatorRegistry, default_registry, vector_distance
from .plan import Cursor, Projection, QueryPlan, SortKey
from .parser import parse_expression, parse_query, run_query
from .builder import Query

__all__ = [
    'And',
    'Call',
    'Comparison',
    'Expression',
    'Field',
    'Literal',
    'Not',
    'Or',
    'Parameter',
    'VECTOR_DISTANCE',
    'NamedOperator',
    'OperatorRegistry',
    'default_registry',
    'vector_distance',
    'Cursor',
    'Projection',
    'QueryPlan',
    'SortKey',
    'parse_expression',
    'parse_query',
    'run_query',
    'Query'
]
