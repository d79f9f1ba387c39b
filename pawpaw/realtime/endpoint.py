from fastapi import WebSocket, WebSocketDisconnect, status

from pawpaw.core.logging import get_logger
from pawpaw.deps import get_websocket_user
from pawpaw.realtime.base import get_registry

log = get_logger(__name__)


async def serve_events(websocket: WebSocket, channel: str) -> None:
    """Hold an authenticated socket open in the channel's registry until the client leaves."""
    user = await get_websocket_user(websocket)
    await websocket.accept()
    if user is None:
        log.warning("websocket_unauthorized", path=websocket.url.path)
        await websocket.send_json({"error": "Unauthorized"})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    user_id = str(user.id)
    registry = get_registry(channel)
    await registry.register(user_id, websocket)
    try:
        while True:
            message = await websocket.receive_text()
            log.debug("websocket_message", channel=channel, user_id=user_id, size=len(message))
    except WebSocketDisconnect:
        pass
    finally:
        await registry.unregister(user_id, websocket)
