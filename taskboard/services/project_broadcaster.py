import logging
from typing import Any

from fastapi import Request

logger = logging.getLogger(__name__)


class ProjectBroadcaster:
    """Fans out mutation events to the sockets joined to a project channel.

    Delivery is best effort: nothing is buffered for late joiners and a socket
    that fails to receive is dropped from every channel.
    """

    def __init__(self):
        self._channels: dict[int, set] = {}

    def join(self, project_id: int, ws):
        self._channels.setdefault(project_id, set()).add(ws)

    def leave(self, project_id: int, ws):
        sockets = self._channels.get(project_id)
        if sockets is None:
            return
        sockets.discard(ws)
        if not sockets:
            del self._channels[project_id]

    def disconnect(self, ws):
        for project_id in list(self._channels):
            self.leave(project_id, ws)

    def subscribers(self, project_id: int) -> set:
        return set(self._channels.get(project_id, ()))

    async def publish(self, project_id: int, event: str, data: Any):
        message = {"event": event, "data": data}
        delivered = 0
        for ws in self.subscribers(project_id):
            try:
                await ws.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(
                    f"Dropping subscriber of project {project_id} after failed send: {e}"
                )
                self.disconnect(ws)
        logger.debug(f"Published {event} to {delivered} subscriber(s) of project {project_id}")
        return delivered


def get_broadcaster(request: Request) -> ProjectBroadcaster:
    return request.app.state.broadcaster
