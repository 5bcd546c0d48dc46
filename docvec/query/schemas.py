"""
Pydantic models validating the builder's near-query arguments.
"""

import numbers
from typing import Any, Dict, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, field_validator

from ..core.values import split_path
from ..util.logging import logger
from ..vector.distance import available_metrics
from ..vector.types import Vector


class _NearSpec(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    field: str
    target: Vector
    metric: Optional[str] = None

    @field_validator('field')
    @classmethod
    def field_must_be_path(cls, v):
        split_path(v)
        return v

    @field_validator('metric')
    @classmethod
    def metric_must_be_registered(cls, v):
        if v is not None and v.strip().lower() not in available_metrics():
            raise ValueError(f'unknown metric {v!r}; available: {available_metrics()}')
        return v


class NearFilterSpec(_NearSpec):
    """Arguments of Query.where_near."""

    max_distance: float = Field(allow_inf_nan=False)

    @field_validator('max_distance', mode='before')
    @classmethod
    def max_distance_must_not_be_bool(cls, v):
        if isinstance(v, (bool, np.bool_)):
            raise ValueError('max_distance must be a number, not a boolean')
        return v


class TopKNearSpec(_NearSpec):
    """Arguments of Query.top_k_near."""

    k: StrictInt

    @field_validator('k', mode='before')
    @classmethod
    def k_must_be_integral(cls, v):
        # numpy integers are accepted; bool is an Integral but never a count
        if isinstance(v, (bool, np.bool_)):
            raise ValueError('k must be an integer, not a boolean')
        if isinstance(v, numbers.Integral):
            return int(v)
        return v


def _validated(model, operation: str, values: Dict[str, Any]):
    # Vector casting errors are raised as-is rather than folded into a ValidationError
    values = dict(values, target=Vector.from_value(values["target"]))
    try:
        return model(**values)
    except ValidationError as e:
        logger.log_schema_validation_error(operation, e.errors(), {"field": values.get("field")})
        raise


def validate_near_filter(field: str, target: Any, max_distance: float, metric: Optional[str] = None) -> NearFilterSpec:
    """Validate where_near arguments; raises ValidationError or a vector error."""
    return _validated(NearFilterSpec, "query.where_near", {
        "field": field, "target": target, "max_distance": max_distance, "metric": metric,
    })


def validate_top_k_near(field: str, target: Any, k: int, metric: Optional[str] = None) -> TopKNearSpec:
    """Validate top_k_near arguments; raises ValidationError or a vector error."""
    return _validated(TopKNearSpec, "query.top_k_near", {
        "field": field, "target": target, "k": k, "metric": metric,
    })
