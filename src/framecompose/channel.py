"""Request/response channel between worker threads and an owning thread.

Some work (reading live layout geometry) may only run on the thread that
owns the resource. Other threads send it requests through a RequestChannel;
the owner drains them with serve_pending(). Every request carries a uuid
correlation id and waits on its own response slot, so responses can never
be matched to the wrong caller.

Message shapes:
    request  {"id": "<uuid4>", "type": "resolve-target", "payload": {...}}
    response {"id": "<uuid4>", "ok": True, "result": ...}
             {"id": "<uuid4>", "ok": False, "error": "..."}
"""

import queue
import threading
import uuid


DEFAULT_TIMEOUT = 2.0


class ChannelError(RuntimeError):
    """The handler for a request failed or no handler was registered."""


class ChannelTimeoutError(TimeoutError):
    """No response arrived before the request's timeout."""


class _Pending:
    def __init__(self):
        self.event = threading.Event()
        self.response = None


class RequestChannel:
    """Correlated request/response messaging with per-request timeouts.

    Args:
        handlers: Message type -> callable(payload) returning the result.
        timeout: Default seconds a request waits for its response.
    """

    def __init__(self, handlers: dict | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.handlers = dict(handlers or {})
        self.timeout = timeout
        self._requests = queue.Queue()
        self._pending = {}
        self._lock = threading.Lock()

    def register(self, message_type: str, handler) -> None:
        self.handlers[message_type] = handler

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def request(self, message_type: str, payload=None, timeout: float | None = None):
        """Send a request and block until its response arrives.

        Raises:
            ChannelTimeoutError: No response within the timeout. The request
                is forgotten; a late response is discarded.
            ChannelError: The handler raised or the type has no handler.
        """
        request_id = str(uuid.uuid4())
        slot = _Pending()
        with self._lock:
            self._pending[request_id] = slot
        self._requests.put({"id": request_id, "type": message_type, "payload": payload})

        wait = self.timeout if timeout is None else timeout
        if not slot.event.wait(wait):
            with self._lock:
                self._pending.pop(request_id, None)
            raise ChannelTimeoutError(
                f"Request {request_id} ({message_type}) timed out after {wait}s"
            )

        response = slot.response
        if not response["ok"]:
            raise ChannelError(response["error"])
        return response["result"]

    def _is_waiting(self, request_id: str) -> bool:
        with self._lock:
            return request_id in self._pending

    def _respond(self, response: dict) -> bool:
        with self._lock:
            slot = self._pending.pop(response["id"], None)
        if slot is None:
            return False
        slot.response = response
        slot.event.set()
        return True

    def _handle(self, message: dict) -> dict:
        handler = self.handlers.get(message["type"])
        if handler is None:
            return {
                "id": message["id"], "ok": False,
                "error": f"No handler for message type '{message['type']}'",
            }
        try:
            result = handler(message["payload"])
        except Exception as exc:
            return {"id": message["id"], "ok": False, "error": f"{type(exc).__name__}: {exc}"}
        return {"id": message["id"], "ok": True, "result": result}

    def serve_pending(self, max_requests: int | None = None, block: float | None = None) -> int:
        """Answer queued requests on the calling (owning) thread.

        Requests whose caller already timed out are dropped without running
        their handler.

        Args:
            max_requests: Stop after this many requests. None drains the queue.
            block: Seconds to wait for the first request when the queue is
                empty. None returns immediately.

        Returns:
            Number of requests answered.
        """
        served = 0
        while max_requests is None or served < max_requests:
            try:
                if served == 0 and block:
                    message = self._requests.get(timeout=block)
                else:
                    message = self._requests.get_nowait()
            except queue.Empty:
                break
            if not self._is_waiting(message["id"]):
                continue
            self._respond(self._handle(message))
            served += 1
        return served
