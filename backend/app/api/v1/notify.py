"""
FastAPI route: notification dispatch endpoint.

Provides endpoints to:
    POST /notify            — send one notification via a named channel
    GET  /notify/channels   — list registered channels

``channel``, ``to`` and ``message`` are accepted as query parameters or
as form fields (url-encoded or multipart). Query parameters win when a
name is given in both places.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from backend.app.core.errors import ValidationError
from backend.app.notifications.dispatcher import NotificationDispatcher

router = APIRouter(prefix="/notify", tags=["notifications"])

_REQUIRED_PARAMS = ("channel", "to", "message")
_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


# ---------------------------------------------------------------------------
# Request / Response Schemas
# ---------------------------------------------------------------------------

class NotifyParams(BaseModel):
    """Parameters of a single send."""
    channel: str = Field(..., examples=["email"], description="Registered channel name.")
    to: str = Field(..., examples=["alice@example.com"], description="Recipient, opaque to the service.")
    message: str = Field(..., examples=["hi"], description="Message body, passed through as is.")


class ChannelListResponse(BaseModel):
    channels: List[str]
    count: int


# notify_params reads the raw request, so the parameters are documented here
_NOTIFY_OPENAPI: Dict[str, Any] = {
    "parameters": [
        {
            "name": name,
            "in": "query",
            "required": False,
            "description": f"{NotifyParams.model_fields[name].description} "
                           "Required here or in the form body.",
            "schema": {"type": "string"},
        }
        for name in _REQUIRED_PARAMS
    ],
    "requestBody": {
        "required": False,
        "content": {
            form_type: {"schema": NotifyParams.model_json_schema()}
            for form_type in _FORM_TYPES
        },
    },
}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_dispatcher(request: Request) -> NotificationDispatcher:
    """The dispatcher built at startup by create_app()."""
    return request.app.state.dispatcher


async def notify_params(request: Request) -> NotifyParams:
    """Collect send parameters from the query string and form body."""
    values: Dict[str, str] = {}

    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(_FORM_TYPES):
        form = await request.form()
        for name in _REQUIRED_PARAMS:
            value = form.get(name)
            if isinstance(value, str):
                values[name] = value

    for name in _REQUIRED_PARAMS:
        if name in request.query_params:
            values[name] = request.query_params[name]

    missing = [name for name in _REQUIRED_PARAMS if name not in values]
    if missing:
        raise ValidationError(
            f"Missing required parameter(s): {', '.join(missing)}",
            missing=missing,
        )
    if not values["channel"]:
        raise ValidationError("channel must not be empty", field="channel")

    return NotifyParams(**values)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_class=PlainTextResponse,
    summary="Send a notification",
    openapi_extra=_NOTIFY_OPENAPI,
)
def notify(
    params: NotifyParams = Depends(notify_params),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> str:
    """
    Send ``message`` to ``to`` through ``channel``.

    Returns ``Notification send via <channel>`` as plain text. An unknown
    channel answers 400 with the list of available channels.
    """
    dispatcher.send(params.channel, params.to, params.message)
    return f"Notification send via {params.channel}"


@router.get("/channels", response_model=ChannelListResponse)
def list_channels(
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ChannelListResponse:
    channels = dispatcher.registry.channels()
    return ChannelListResponse(channels=channels, count=len(channels))
