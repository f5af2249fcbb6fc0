from django.urls import path

from roster.handlers import (
    EventDetailView,
    IntentView,
    MemberDetailView,
    MemberListView,
    ScopeEventListView,
)

urlpatterns = [
    path("scopes/<str:scope>/events", ScopeEventListView.as_view(), name="scope-event-list"),
    path("scopes/<str:scope>/intents", IntentView.as_view(), name="scope-intents"),
    path("events/<str:event_id>", EventDetailView.as_view(), name="event-detail"),
    path("members", MemberListView.as_view(), name="member-list"),
    path("members/<str:subject>", MemberDetailView.as_view(), name="member-detail"),
]
