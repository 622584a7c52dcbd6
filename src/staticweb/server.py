"""
=============================================================================
FILE SERVER
=============================================================================

Ties the accept loop to the request handler:

    SocketServer.start(self._handle_connection)
        │
        └──► for each accepted connection:
                 threading.Thread(target=handler.handle, args=(conn,)).start()

=============================================================================
ONE THREAD PER CONNECTION
=============================================================================

Every connection gets its own short-lived daemon thread that handles
exactly one request and exits. Workers share nothing mutable: the request
handler, path resolver, classifier and response writer only hold
read-only settings. There is no pool and no admission limit; a burst of
connections produces a burst of threads.

=============================================================================
"""

import logging
import threading
from typing import Optional

from .config import ServerConfig
from .core import SocketServer, Connection
from .handlers import RequestHandler


logger = logging.getLogger(__name__)


class WebServer:
    """
    Single-request-per-connection HTTP file server.

    =========================================================================
    USAGE
    =========================================================================

        server = WebServer(ServerConfig(port=8080, document_root="./public"))
        server.run()        # blocks until Ctrl+C / SIGTERM / shutdown()

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Uses defaults if not provided.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self._socket_server = SocketServer(self.config)
        self._handler = RequestHandler.from_config(self.config)
        self._running = False

    @property
    def address(self):
        """The bound (host, port); the real port once the server is ready."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    def run(self, setup_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            setup_logging: Configure the root logger from config.log_level.
                           Embedders and tests that manage logging
                           themselves pass False.
        """
        if setup_logging:
            self._setup_logging()

        self._running = True
        logger.info(
            f"Starting {self.config.server_name} on {self.config.host}:{self.config.port}, "
            f"serving {self.config.root_path.resolve()}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._running = False
            logger.info("Server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is up."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """
        Stop accepting connections.

        Workers already running finish their single request on their own.
        """
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("staticweb").setLevel(level)

    def _handle_connection(self, conn: Connection):
        """
        Spawn a worker thread for a connection.

        Called by SocketServer on the accept thread; returns immediately.
        """
        worker = threading.Thread(
            target=self._handler.handle,
            args=(conn,),
            name=f"worker-{conn.id}",
            daemon=True,
        )
        try:
            worker.start()
        except RuntimeError as e:
            # Out of threads: drop this client, keep accepting the rest
            logger.error(f"[{conn.id}] Could not start worker for {conn.client_ip}: {e}")
            conn.close()
