"""Advertised link status and its HTTP responder."""

import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

import structlog

from serverlink.fetch.constants import DEFAULT_STATUS_PATH, HTTP_STATUS_OK
from serverlink.link.constants import COMPONENT_HOLDER
from serverlink.link.errors import InvalidStatusError
from serverlink.link.models import RECOGNIZED_STATUS_VALUES, Status


logger = structlog.get_logger()

HTTP_STATUS_NOT_FOUND = 404


def coerce_status(value: object) -> Status:
    """Validate a value against the recognized statuses.

    Args:
        value: Status member or its string value.

    Returns:
        The matching Status.

    Raises:
        InvalidStatusError: If the value is not a recognized status.
    """
    if isinstance(value, Status):
        value = value.value
    if isinstance(value, str) and value in RECOGNIZED_STATUS_VALUES:
        return Status(value)
    raise InvalidStatusError(value)


class LinkStatusHolder:
    """Holds the status this process advertises to dependents."""

    def __init__(self, status: Status | str = Status.ONLINE) -> None:
        """Initialize the holder.

        Args:
            status: Initial status.

        Raises:
            InvalidStatusError: If the status is not recognized.
        """
        self._status = coerce_status(status)

    @property
    def status(self) -> Status:
        """Get the advertised status."""
        return self._status

    @status.setter
    def status(self, value: Status | str) -> None:
        """Set the advertised status, rejecting unrecognized values."""
        self._status = coerce_status(value)


def _make_handler(
    holder: LinkStatusHolder,
    path: str,
) -> type[BaseHTTPRequestHandler]:
    """Build a request handler class bound to a holder."""
    log = logger.bind(component=COMPONENT_HOLDER, path=path)

    class StatusRequestHandler(BaseHTTPRequestHandler):
        """Serves the holder's status as plain text."""

        def log_message(self, format: str, *args: object) -> None:  # noqa: A002
            log.debug("request", client=self.client_address[0], line=format % args)

        def do_GET(self) -> None:  # noqa: N802
            if urlsplit(self.path).path != path:
                self.send_error(HTTP_STATUS_NOT_FOUND)
                return

            body = holder.status.value.encode("utf-8")
            self.send_response(HTTP_STATUS_OK)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

    return StatusRequestHandler


class StatusResponder:
    """HTTP responder exposing a holder's status on one path.

    Runs a threaded stdlib server, either in a background thread
    (start/stop, or as a context manager) or in the foreground
    (serve_forever).
    """

    def __init__(
        self,
        holder: LinkStatusHolder,
        path: str = DEFAULT_STATUS_PATH,
        host: str = "127.0.0.1",
        port: int = 0,
    ) -> None:
        """Initialize and bind the responder.

        Args:
            holder: Status holder to serve.
            path: Status endpoint path.
            host: Interface to bind.
            port: Port to bind, 0 for an ephemeral port.
        """
        self._holder = holder
        self._path = path
        self._server = ThreadingHTTPServer((host, port), _make_handler(holder, path))
        self._server.daemon_threads = True
        self._thread: threading.Thread | None = None
        self._log = logger.bind(component=COMPONENT_HOLDER, path=path)

    @property
    def holder(self) -> LinkStatusHolder:
        """Get the served holder."""
        return self._holder

    @property
    def address(self) -> str:
        """Get the bound address as ``host:port``."""
        host, port = self._server.server_address[0], self._server.server_address[1]
        if isinstance(host, bytes):
            host = host.decode("utf-8")
        return f"{host}:{port}"

    @property
    def url(self) -> str:
        """Get the base URL of the responder."""
        return f"http://{self.address}"

    def start(self) -> "StatusResponder":
        """Serve requests on a background daemon thread.

        Returns:
            This responder.
        """
        if self._thread is None:
            self._thread = threading.Thread(
                target=self._server.serve_forever,
                name=f"serverlink-responder-{self.address}",
                daemon=True,
            )
            self._thread.start()
            self._log.info("responder_started", address=self.address)
        return self

    def serve_forever(self) -> None:
        """Serve requests on the calling thread until shut down."""
        self._log.info("responder_started", address=self.address)
        try:
            self._server.serve_forever()
        finally:
            self._server.server_close()

    def stop(self) -> None:
        """Stop serving and release the socket."""
        if self._thread is not None:
            self._server.shutdown()
            self._thread.join()
            self._thread = None
        self._server.server_close()
        self._log.info("responder_stopped", address=self.address)

    def __enter__(self) -> "StatusResponder":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
