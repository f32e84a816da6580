"""Unix-socket bridge server: one listener per host session.

Lifecycle: ``on_session_start()`` binds the socket derived from the host's
working directory; ``on_session_shutdown()`` stops accepting and removes
the socket file. Each accepted connection gets its own ``FrameDecoder``,
answers its first frame with exactly one JSON line, and is closed.
"""

import asyncio
import enum
import logging
import os

from . import config
from .address import derive_socket_path
from .dispatcher import fire_and_forget, respond_to_frame
from .errors import FrameTooLarge
from .framing import FrameDecoder
from .host import HostHandle
from .messages import ErrorResponse, Response, encode_response
from .protocol_constants import ERR_INTERNAL, STATUS_KEY, STATUS_TEXT

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024
SOCKET_MODE = 0o600


class BridgeState(enum.Enum):
    UNBOUND = "unbound"
    BOUND = "bound"
    ACCEPTING = "accepting"
    UNBINDING = "unbinding"


def _remove_socket_file(path: str) -> None:
    """Remove a socket file, treating any failure as already absent."""
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug("Could not remove socket file %s: %s", path, e)


class BridgeServer:
    """Owns the listening socket for one host session.

    Several instances can coexist (e.g. in tests) as long as their hosts
    report different working directories or they use different socket dirs.
    """

    def __init__(
        self,
        host: HostHandle,
        *,
        socket_dir: str | None = None,
        max_frame_bytes: int | None = None,
        idle_timeout: float | None = None,
    ):
        self.host = host
        self.socket_dir = socket_dir if socket_dir is not None else config.SOCKET_DIR
        self.max_frame_bytes = config.MAX_FRAME_BYTES if max_frame_bytes is None else max_frame_bytes
        self.idle_timeout = config.IDLE_TIMEOUT_SECONDS if idle_timeout is None else idle_timeout

        self.state = BridgeState.UNBOUND
        self._server: asyncio.Server | None = None
        self._socket_path: str | None = None
        self._clients: set[asyncio.StreamWriter] = set()

    @property
    def socket_path(self) -> str | None:
        return self._socket_path

    @property
    def is_serving(self) -> bool:
        return self.state is BridgeState.ACCEPTING

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def on_session_start(self) -> bool:
        """Bind the session's socket. Returns False if binding failed.

        A bind failure is reported to the host UI and leaves the server
        unbound; it never propagates into the host.
        """
        if self.state is not BridgeState.UNBOUND:
            logger.warning("Bridge already started (%s), ignoring session start", self.state.value)
            return self.is_serving

        path = derive_socket_path(self.host.current_working_directory(), self.socket_dir)
        _remove_socket_file(path)

        try:
            server = await asyncio.start_unix_server(self._handle_client, path=path)
        except OSError as e:
            logger.error("Bridge failed to bind %s: %s", path, e)
            fire_and_forget(self.host.notify, f"nvim bridge error: {e.strerror or e}", "error")
            return False

        self._server = server
        self._socket_path = path
        self.state = BridgeState.BOUND

        try:
            os.chmod(path, SOCKET_MODE)
        except OSError as e:
            logger.debug("Could not restrict permissions on %s: %s", path, e)

        self.state = BridgeState.ACCEPTING
        logger.info("Bridge listening on %s", path)
        fire_and_forget(self.host.notify, f"nvim bridge: {path}", "info")
        fire_and_forget(self.host.set_status, STATUS_KEY, STATUS_TEXT)
        return True

    async def on_session_shutdown(self) -> None:
        """Stop accepting and remove the socket file. Safe to call repeatedly."""
        if self._server is None and self._socket_path is None:
            return
        self.state = BridgeState.UNBINDING

        server, self._server = self._server, None
        if server is not None:
            server.close()
            # Unblock handlers still waiting on a silent client
            for writer in list(self._clients):
                writer.close()
            try:
                await server.wait_closed()
            except Exception:
                logger.exception("Error while waiting for bridge server to close")

        if self._socket_path is not None:
            _remove_socket_file(self._socket_path)
            logger.info("Bridge stopped, removed %s", self._socket_path)
            self._socket_path = None

        self.state = BridgeState.UNBOUND

    async def __aenter__(self) -> "BridgeServer":
        await self.on_session_start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.on_session_shutdown()

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    async def _read_chunk(self, reader: asyncio.StreamReader) -> bytes:
        if not self.idle_timeout:
            return await reader.read(READ_CHUNK_SIZE)
        try:
            return await asyncio.wait_for(reader.read(READ_CHUNK_SIZE), timeout=self.idle_timeout)
        except asyncio.TimeoutError:
            logger.debug("Closing bridge connection idle for %.1fs", self.idle_timeout)
            return b""

    def _respond(self, frame: bytes) -> Response:
        try:
            return respond_to_frame(frame, self.host)
        except Exception:
            logger.exception("Unexpected error answering bridge frame")
            return ErrorResponse(error=ERR_INTERNAL)

    async def _read_response(self, reader: asyncio.StreamReader) -> Response | None:
        """Read until the first complete frame and answer it.

        Returns None when the client goes away before sending a full frame.
        Frames after the first are never dispatched.
        """
        decoder = FrameDecoder(self.max_frame_bytes)
        while True:
            chunk = await self._read_chunk(reader)
            if not chunk:
                if decoder.pending:
                    logger.debug("Client left with %d bytes of unterminated frame", decoder.pending)
                return None
            try:
                for frame in decoder.feed(chunk):
                    return self._respond(frame)
            except FrameTooLarge as e:
                logger.warning("Rejecting connection: %s", e.detail)
                return ErrorResponse(error=e.reason)

    async def _send_quietly(self, writer: asyncio.StreamWriter, response: Response) -> None:
        try:
            writer.write(encode_response(response))
            await writer.drain()
        except (ConnectionError, OSError) as e:
            logger.debug("Could not send error response: %s", e)

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._clients.add(writer)
        responded = False
        try:
            response = await self._read_response(reader)
            if response is not None:
                payload = encode_response(response)
                responded = True
                writer.write(payload)
                await writer.drain()
        except asyncio.CancelledError:
            raise
        except (ConnectionError, OSError) as e:
            logger.debug("Bridge connection error: %s", e)
        except Exception:
            logger.exception("Unexpected error handling bridge connection")
            if not responded:
                await self._send_quietly(writer, ErrorResponse(error=ERR_INTERNAL))
        finally:
            self._clients.discard(writer)
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
