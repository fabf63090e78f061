"""
ScopeNotes Backend — Scope Context Package
===========================================

What:  Everything that answers "which category is this execution scoped to?"

Contents:
    - resolvers.py: ScopeResolver interface, RequestScopeResolver, JobScopeResolver
    - selector.py:  ScopeSelector, which picks one of them per execution
"""

from scopenotes.context.resolvers import (
    JobScopeResolver,
    RequestScopeResolver,
    ResolutionState,
    ScopeResolver,
    parse_category_id,
)
from scopenotes.context.selector import ScopeSelector, get_scope_selector

__all__ = [
    "JobScopeResolver",
    "RequestScopeResolver",
    "ResolutionState",
    "ScopeResolver",
    "ScopeSelector",
    "get_scope_selector",
    "parse_category_id",
]
