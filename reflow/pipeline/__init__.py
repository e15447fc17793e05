"""
Pipeline — action → reducer → effect with compensation.

    from reflow import pipeline as P

    result = await (
        P.bind(action, store)
        .reduce(reducer)
        .effect(effect)
        .catch(Kind.EFFECT, P.revert(store, lambda e: fallback))
    )
"""

from __future__ import annotations

from reflow.pipeline._types import (
    Store,
    Transition,
    Reducer,
    EffectFn,
    Handler,
)
from reflow.pipeline._stage import Bound, Reduced, Effected, bind
from reflow.pipeline._compensate import rollback, revert
from reflow.pipeline._store import RetryingStore, with_retry

__all__ = (
    "Store",
    "Transition",
    "Reducer",
    "EffectFn",
    "Handler",
    "Bound",
    "Reduced",
    "Effected",
    "bind",
    "rollback",
    "revert",
    "RetryingStore",
    "with_retry",
)
