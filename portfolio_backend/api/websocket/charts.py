"""WebSocket endpoint pushing chart updates."""
from typing import Dict, Set
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import logging

from portfolio_backend.services.chart_session import ChartView

logger = logging.getLogger(__name__)
router = APIRouter()


class ChartBroadcaster:
    """Fan published chart views out to WebSocket clients.

    The last view of every chart is kept so a client that connects late
    (or asks for a refresh) starts from what is currently displayed.
    Clients that fail to receive are dropped.
    """

    def __init__(self):
        self._clients: Set[WebSocket] = set()
        self._latest: Dict[str, dict] = {}

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def attach(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._clients.add(websocket)
        logger.info(f"Chart client connected. Total: {self.client_count}")
        await self.replay(websocket)

    def detach(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        logger.info(f"Chart client disconnected. Total: {self.client_count}")

    async def replay(self, websocket: WebSocket) -> None:
        """Send the current view of every chart to one client."""
        for message in list(self._latest.values()):
            await websocket.send_json(message)

    async def publish(self, view: ChartView) -> None:
        """ChartSession callback: remember the view and push it to everyone."""
        message = {"type": view.chart, "data": view.model_dump(mode="json")}
        self._latest[view.chart] = message

        for websocket in list(self._clients):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping chart client after send failure: {e}")
                self._clients.discard(websocket)

    def reset(self) -> None:
        self._latest.clear()


# Singleton broadcaster
broadcaster = ChartBroadcaster()


@router.websocket("/ws/charts")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Growth and heatmap updates. Send "refresh" to get the current views again."""
    await broadcaster.attach(websocket)
    try:
        while True:
            text = await websocket.receive_text()
            if text.strip().lower() == "refresh":
                await broadcaster.replay(websocket)
            else:
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        broadcaster.detach(websocket)
    except Exception as e:
        logger.error(f"Chart WebSocket error: {e}")
        broadcaster.detach(websocket)
