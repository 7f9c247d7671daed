"""
HTTP file server for HLS output.

Serves the directory the stream writes playlists and segments into, so any
HLS player can follow the live master playlist.
"""

import logging
import os
import threading
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional

logger = logging.getLogger(__name__)

HLS_CONTENT_TYPES = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/mp2t",
    ".aac": "audio/aac",
}


class HLSRequestHandler(SimpleHTTPRequestHandler):
    """Static file handler with HLS content types and CORS headers."""

    extensions_map = {**SimpleHTTPRequestHandler.extensions_map, **HLS_CONTENT_TYPES}

    def end_headers(self):
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET, HEAD, OPTIONS")
        # Live playlists change every segment
        if getattr(self, "path", "").split("?", 1)[0].endswith(".m3u8"):
            self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def do_OPTIONS(self):
        self.send_response(204)
        self.end_headers()

    def list_directory(self, path):
        self.send_error(404, "Not Found")
        return None

    def log_message(self, format, *args):
        """Override to use our logger."""
        logger.debug(f"[HTTP] {self.address_string()} - {format % args}")


class HLSFileServer:
    """HTTP server for a stream's output directory."""

    def __init__(self, root: str, host: str = "0.0.0.0", port: int = 8080):
        """
        Args:
            root: Directory to serve (the stream's output directory)
            host: Host to bind to
            port: Port to bind to (0 picks a free port, see server_port)
        """
        self.root = os.path.abspath(root)
        self.host = host
        self.port = port
        self.server: Optional[ThreadingHTTPServer] = None
        self.server_thread: Optional[threading.Thread] = None
        self._shutdown = False

    @property
    def server_port(self) -> int:
        """Port actually bound (differs from port when port=0)."""
        if self.server is None:
            raise RuntimeError("Server not started")
        return self.server.server_address[1]

    def start(self) -> None:
        """Start HTTP server in a background thread."""
        if self.server is not None:
            raise RuntimeError("Server already started")

        handler_class = partial(HLSRequestHandler, directory=self.root)
        self.server = ThreadingHTTPServer((self.host, self.port), handler_class)
        self._shutdown = False

        self.server_thread = threading.Thread(
            target=self._run_server,
            daemon=True,
            name="HLSFileServer",
        )
        self.server_thread.start()

        logger.info(f"[HTTP] Serving {self.root} on {self.host}:{self.server_port}")

    def _run_server(self):
        """Run server (called in background thread)."""
        try:
            self.server.serve_forever()
        except Exception as e:
            if not self._shutdown:
                logger.error(f"[HTTP] Server error: {e}")

    def stop(self) -> None:
        """Stop HTTP server."""
        if self.server is None:
            return

        self._shutdown = True
        self.server.shutdown()
        self.server.server_close()

        if self.server_thread:
            self.server_thread.join(timeout=2.0)

        self.server = None
        self.server_thread = None

        logger.info("[HTTP] Server stopped")
