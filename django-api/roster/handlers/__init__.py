from roster.handlers.views import (
    EventDetailView,
    IntentView,
    MemberDetailView,
    MemberListView,
    ScopeEventListView,
)

__all__ = [
    "EventDetailView",
    "IntentView",
    "MemberDetailView",
    "MemberListView",
    "ScopeEventListView",
]
