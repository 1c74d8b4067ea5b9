import asyncio
import logging

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from ..domain.entities import ErrorCode, ErrorMessage, ServerMessage
from ..domain.services import TypingService

logger = logging.getLogger(__name__)


class WebSocketHandler:

    def __init__(self, typing_service: TypingService):
        self._typing_service = typing_service

    async def handle_websocket(self, websocket: WebSocket) -> None:
        # Note: websocket.accept() is called by the API endpoint before this
        send_task = asyncio.create_task(self._send_loop(websocket))
        receive_task = asyncio.create_task(self._receive_loop(websocket))
        done, pending = await asyncio.wait(
            {send_task, receive_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        try:
            for task in done:
                exc = task.exception()
                if exc:
                    raise exc
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected: {websocket.client}")
        except Exception as e:
            logger.error(f"WebSocket error: {e}", exc_info=True)
        finally:
            await self._typing_service.stop()
            for t in (send_task, receive_task):
                if not t.done():
                    t.cancel()
            await asyncio.gather(send_task, receive_task, return_exceptions=True)

            if websocket.client_state != WebSocketState.DISCONNECTED:
                await websocket.close()
            logger.info(f"WebSocket connection closed: {websocket.client}")

    async def _send_loop(self, websocket: WebSocket) -> None:
        while self._typing_service.running:
            item: ServerMessage = await self._typing_service.outbound_queue.get()
            logger.debug(f"_send_loop sending {item.type}")
            await websocket.send_text(item.model_dump_json())

    async def _receive_loop(self, websocket: WebSocket) -> None:
        """Receive messages from the client and forward them to the typing service."""
        while True:
            data = await websocket.receive()

            if data.get("type") == "websocket.disconnect":
                logger.info(f"Client disconnected with code {data.get('code')}")
                break

            if data.get("text") is not None:
                await self._typing_service.handle_message(data["text"])
            elif data.get("bytes") is not None:
                await self._typing_service.outbound_queue.put(ErrorMessage(
                    code=ErrorCode.INVALID_MESSAGE,
                    message="Binary frames are not supported",
                ))
