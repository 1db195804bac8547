from __future__ import annotations

import asyncio
import logging
from typing import Any

import obsws_python as obs
from obsws_python.error import OBSSDKRequestError

from obs_delay.constants import DEFAULT_CALL_TIMEOUT_S, LATE_REPLY_GRACE
from obs_delay.errors import ObsCallError
from obs_delay.state import ConnectionState


class ObsClient:
    """
    Owns the single obs-websocket session used to read and write filter settings.

    - connect() is attempted once; a failure is logged and the client stays
      disconnected (every later call raises ObsCallError).
    - obsws-python's ReqClient is blocking and takes the next frame on the
      socket as the reply to the request it just sent. Requests therefore run
      one at a time on a worker thread, and the socket is only handed to the
      next request once the previous one has read its reply, even when the
      caller already gave up on it.
    - A caller waits at most ``timeout`` seconds, counted from the moment its
      request is sent. Queueing behind other requests does not count.
    - The socket itself times out after ``session_timeout`` seconds. A request
      that dies on the socket (timeout, closed connection) leaves replies
      unaccounted for, so the session is dropped and not reopened.
    """

    def __init__(
        self,
        host: str,
        port: int,
        password: str | None = None,
        timeout: float = DEFAULT_CALL_TIMEOUT_S,
        session_timeout: float | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.password = password
        self.timeout = timeout
        if session_timeout is None:
            session_timeout = timeout * LATE_REPLY_GRACE
        self.session_timeout = session_timeout
        self.state = ConnectionState(url=f"ws://{host}:{port}")
        self._client: obs.ReqClient | None = None
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._client is not None

    def _open(self) -> obs.ReqClient:
        return obs.ReqClient(
            host=self.host,
            port=self.port,
            password=self.password or "",
            timeout=self.session_timeout,
        )

    def _close(self, client: obs.ReqClient) -> None:
        try:
            client.disconnect()
            logging.info("Disconnected from OBS at %s", self.state.url)
        except Exception as e:
            logging.debug("OBS disconnect error: %s", e)

    async def connect(self) -> bool:
        """Open the session. Returns False (after logging) when OBS is unreachable."""
        if self._client is not None:
            return True
        try:
            client = await asyncio.to_thread(self._open)
            version = await asyncio.to_thread(client.get_version)
        except Exception as e:
            self.state.connected = False
            self.state.last_error = str(e) or type(e).__name__
            logging.error("Failed to connect to OBS at %s: %s", self.state.url, e)
            return False

        self._client = client
        self.state.connected = True
        self.state.last_error = ""
        self.state.obs_version = str(getattr(version, "obs_version", "") or "")
        logging.info(
            "Connected to OBS %s (obs-websocket %s) at %s",
            self.state.obs_version or "?",
            getattr(version, "obs_web_socket_version", "?"),
            self.state.url,
        )
        return True

    async def disconnect(self) -> None:
        client, self._client = self._client, None
        self.state.connected = False
        if client is not None:
            await asyncio.to_thread(self._close, client)

    def _drop_session(self, client: obs.ReqClient, error: BaseException) -> None:
        if self._client is not client:
            return
        self._client = None
        self.state.connected = False
        self.state.last_error = str(error) or type(error).__name__
        logging.error(
            "OBS session at %s lost (%s); requests are refused until restart",
            self.state.url,
            self.state.last_error,
        )
        asyncio.get_running_loop().run_in_executor(None, self._close, client)

    def _request_done(self, client: obs.ReqClient, request: asyncio.Future) -> None:
        # Runs on the loop once the worker thread returns, answered or not
        try:
            if not request.cancelled():
                error = request.exception()
                if error is not None and not isinstance(error, OBSSDKRequestError):
                    self._drop_session(client, error)
        finally:
            self._lock.release()

    async def _call(self, method: str, *args: Any) -> Any:
        await self._lock.acquire()
        client = self._client
        if client is None:
            self._lock.release()
            raise ObsCallError(f"{method}: not connected to OBS at {self.state.url}")

        request = asyncio.ensure_future(
            asyncio.to_thread(getattr(client, method), *args)
        )
        request.add_done_callback(lambda done: self._request_done(client, done))
        try:
            return await asyncio.wait_for(asyncio.shield(request), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logging.debug("%s still waiting for OBS; reply will be discarded", method)
            raise ObsCallError(f"{method}: timed out after {self.timeout:.1f}s") from e
        except Exception as e:
            raise ObsCallError(f"{method}: {e}") from e

    async def get_filter_settings(self, source_name: str, filter_name: str) -> dict:
        """GetSourceFilter: settings mapping of ``filter_name`` on ``source_name``."""
        resp = await self._call("get_source_filter", source_name, filter_name)
        settings = getattr(resp, "filter_settings", None)
        return dict(settings or {})

    async def set_filter_settings(
        self, source_name: str, filter_name: str, settings: dict
    ) -> None:
        """SetSourceFilterSettings, merged over the filter's current settings."""
        await self._call(
            "set_source_filter_settings", source_name, filter_name, settings, True
        )
