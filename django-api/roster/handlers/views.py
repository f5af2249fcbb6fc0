"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

from django.core.cache import cache
from django.utils import timezone
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from roster.conf import roster_setting
from roster.domain.errors import AmbiguousSelectorError, DomainError, ErrorCode
from roster.domain.lifecycle import is_open
from roster.handlers.serializers import (
    EventDraftSerializer,
    EventSerializer,
    IntentSerializer,
    MemberSerializer,
    serialize_result,
)
from roster.services.event_service import parse_event_id
from roster.services.intents import Intent, Operation
from roster.signals import event_cache_key, scope_cache_key
from roster.wiring import get_event_service

STATUS_BY_CODE = {
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.NOT_A_MEMBER: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_EVENT_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_QUANTITY: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PRIORITY_WINDOW_ACTIVE: status.HTTP_403_FORBIDDEN,
    ErrorCode.EVENT_EXPIRED: status.HTTP_409_CONFLICT,
    ErrorCode.SIGNUP_WINDOW_CLOSED: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_REGISTERED: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.AMBIGUOUS_SELECTOR: status.HTTP_409_CONFLICT,
}


def error_response(error: DomainError) -> Response:
    body = {"code": error.code.value, "message": error.message}
    if isinstance(error, AmbiguousSelectorError):
        body["candidates"] = [
            {"id": str(e.id), "starts_at": timezone.localtime(e.window.start).isoformat()}
            for e in error.candidates
        ]
    return Response(body, status=STATUS_BY_CODE.get(error.code, status.HTTP_400_BAD_REQUEST))


def render_event(event, now) -> dict:
    return EventSerializer(event, context={"now": now}).data


class ScopeEventListView(APIView):
    """Handler for GET/POST /api/scopes/{scope}/events"""

    def get(self, request: Request, scope: str) -> Response:
        key = scope_cache_key(scope)
        now = timezone.now()
        events = cache.get(key)
        if events is None:
            events = get_event_service().list_open_events(scope, now=now)
            cache.set(key, events, roster_setting("CACHE_TIMEOUT"))
        # Snapshots are cached, status is rendered at now.
        return Response([render_event(e, now) for e in events if is_open(e, now)])

    def post(self, request: Request, scope: str) -> Response:
        serializer = EventDraftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        now = timezone.now()
        try:
            event = get_event_service().create_event(scope, serializer.to_draft(), now=now)
        except DomainError as error:
            return error_response(error)
        except ValueError:
            return Response(
                {"code": "INVALID_EVENT", "message": "Invalid event parameters"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(render_event(event, now), status=status.HTTP_201_CREATED)


class EventDetailView(APIView):
    """Handler for GET /api/events/{event_id}"""

    def get(self, request: Request, event_id: str) -> Response:
        now = timezone.now()
        try:
            key = event_cache_key(str(parse_event_id(event_id)))
            event = cache.get(key)
            if event is None:
                event = get_event_service().get_event(event_id)
                cache.set(key, event, roster_setting("CACHE_TIMEOUT"))
        except DomainError as error:
            return error_response(error)
        return Response(render_event(event, now))


class IntentView(APIView):
    """Handler for POST /api/scopes/{scope}/intents"""

    def post(self, request: Request, scope: str) -> Response:
        serializer = IntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        now = timezone.now()
        intent = Intent(
            operation=Operation(data["operation"]),
            scope=scope,
            selector=serializer.to_selector(),
            subject=data["subject"],
            display_name=data["display_name"],
            quantity=data["quantity"],
            now=now,
        )
        try:
            outcome = get_event_service().handle(intent)
        except DomainError as error:
            return error_response(error)
        return Response(
            {
                "operation": outcome.operation.value,
                "event": render_event(outcome.event, now) if outcome.event else None,
                "result": serialize_result(outcome.result),
            }
        )


class MemberListView(APIView):
    """Handler for GET/POST /api/members"""

    def get(self, request: Request) -> Response:
        members = get_event_service().list_members()
        return Response(MemberSerializer(members, many=True).data)

    def post(self, request: Request) -> Response:
        serializer = MemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        member = get_event_service().add_member(**serializer.validated_data)
        return Response(MemberSerializer(member).data, status=status.HTTP_201_CREATED)


class MemberDetailView(APIView):
    """Handler for DELETE /api/members/{subject}"""

    def delete(self, request: Request, subject: str) -> Response:
        try:
            get_event_service().remove_member(subject)
        except DomainError as error:
            return error_response(error)
        return Response(status=status.HTTP_204_NO_CONTENT)
