"""
Task — continuation combinators over async results.

    from reflow import task as T

    profile = T.then(fetch_user(42), lambda user: fetch_profile(user.id))
    safe = T.catch(profile, Kind.NOT_FOUND, lambda e: Profile.empty())
    result = await safe
"""

from __future__ import annotations

from reflow.task._chain import settle, then, catch
from reflow.task._deadline import Signal, deadline

__all__ = (
    "settle",
    "then",
    "catch",
    "Signal",
    "deadline",
)
