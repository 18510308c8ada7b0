"""
Dev server for sitebridge.

Combines HTTP serving of the site root with WebSocket live reload and file
watching. Watch events go through the lifecycle controller; every
successful build pushes a full-reload message to all connected browsers.
"""

from __future__ import annotations

import argparse
import asyncio
import functools
import json
import threading
import time
from http import HTTPStatus
from http.server import HTTPServer, SimpleHTTPRequestHandler
from pathlib import Path
from typing import Any, Callable, Optional

import websockets
from websockets.asyncio.server import ServerConnection, serve as ws_serve

from sitebridge.build.config import load_environment
from sitebridge.build.images import start_image_preprocessing
from sitebridge.build.orchestrator import LifecycleController
from sitebridge.commands import site_config_from_args
from sitebridge.commands.watch import SiteEventHandler, create_observer
from sitebridge.core.utils import log


# =============================================================================
# Injected Client Script
# =============================================================================

# The WebSocket port placeholder is replaced at runtime via str.replace().
LIVE_RELOAD_SCRIPT = """
<script>
(function() {
  var wsPort = __SITEBRIDGE_WS_PORT__;
  var reconnectDelay = 500;
  var maxReconnectDelay = 5000;

  function connect() {
    var ws;
    try {
      ws = new WebSocket('ws://' + location.hostname + ':' + wsPort + '/ws');
    } catch (e) {
      scheduleReconnect();
      return;
    }

    ws.onopen = function() {
      reconnectDelay = 500;
      console.log('[sitebridge] Live reload connected');
    };

    ws.onmessage = function(event) {
      var msg;
      try {
        msg = JSON.parse(event.data);
      } catch (e) {
        return;
      }
      if (msg.type === 'full-reload') {
        location.reload();
      }
    };

    ws.onclose = function() {
      scheduleReconnect();
    };

    ws.onerror = function() {
      ws.close();
    };
  }

  function scheduleReconnect() {
    setTimeout(function() {
      reconnectDelay = Math.min(reconnectDelay * 1.5, maxReconnectDelay);
      connect();
    }, reconnectDelay);
  }

  if (document.readyState === 'loading') {
    document.addEventListener('DOMContentLoaded', connect);
  } else {
    connect();
  }
})();
</script>
"""


def inject_reload_script(html: str, ws_port: int) -> str:
    """Insert the live reload client before </body>, </html>, or at the end."""
    script = LIVE_RELOAD_SCRIPT.replace("__SITEBRIDGE_WS_PORT__", str(ws_port))
    if "</body>" in html:
        return html.replace("</body>", script + "\n</body>", 1)
    if "</html>" in html:
        return html.replace("</html>", script + "\n</html>", 1)
    return html + script


# =============================================================================
# Script-Injecting HTTP Handler
# =============================================================================


class InjectingHandler(SimpleHTTPRequestHandler):
    """HTTP handler that injects the live reload script into HTML responses."""

    ws_port: int = 8001
    quiet: bool = True

    def __init__(self, *args, directory: str | None = None, **kwargs):
        super().__init__(*args, directory=directory, **kwargs)

    def log_message(self, format, *args):
        """Suppress default HTTP logging unless verbose."""
        if not self.quiet:
            super().log_message(format, *args)

    def do_GET(self):
        """Serve files, injecting the reload script into HTML."""
        f_path = Path(self.translate_path(self.path))

        if f_path.is_dir():
            index = f_path / "index.html"
            if index.exists():
                f_path = index

        if f_path.is_file() and f_path.suffix in (".html", ".htm"):
            try:
                content = f_path.read_bytes().decode("utf-8", errors="replace")
            except OSError as e:
                log.warning(f"Could not read {f_path}: {e}")
            else:
                encoded = inject_reload_script(content, self.ws_port).encode("utf-8")

                self.send_response(HTTPStatus.OK)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.send_header("Content-Length", str(len(encoded)))
                # Prevent caching during dev
                self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
                self.end_headers()
                self.wfile.write(encoded)
                return

        super().do_GET()


# =============================================================================
# WebSocket Broadcast Server
# =============================================================================


class ReloadBroadcaster:
    """Manages WebSocket connections and broadcasts reload messages."""

    def __init__(self):
        self._clients: set[ServerConnection] = set()
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    def set_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    async def handler(self, websocket: ServerConnection) -> None:
        """Handle a new WebSocket connection."""
        with self._lock:
            self._clients.add(websocket)
        count = self.client_count
        log.info(f"  Browser connected ({count} client{'s' if count != 1 else ''})")

        try:
            # Clients never send anything; iterate to keep the connection open
            async for _ in websocket:
                pass
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            with self._lock:
                self._clients.discard(websocket)
            count = self.client_count
            log.info(f"  Browser disconnected ({count} client{'s' if count != 1 else ''})")

    def broadcast(self, message: dict[str, Any]) -> None:
        """Broadcast a message to all connected clients.

        Thread-safe: called from the watchdog observer thread.
        """
        if self._loop is None:
            return

        with self._lock:
            clients = set(self._clients)

        if not clients:
            return

        data = json.dumps(message)

        async def _send_all():
            await asyncio.gather(*(self._safe_send(client, data) for client in clients))

        asyncio.run_coroutine_threadsafe(_send_all(), self._loop)

    @staticmethod
    async def _safe_send(client: ServerConnection, data: str) -> None:
        try:
            await client.send(data)
        except websockets.exceptions.ConnectionClosed:
            pass  # Cleaned up in handler


async def _ws_process_request(connection, request):
    """Only accept WebSocket connections on /ws path."""
    if request.path != "/ws":
        return connection.respond(HTTPStatus.NOT_FOUND, "Not found\n")
    return None


def start_ws_server(broadcaster: ReloadBroadcaster, port: int) -> Callable[[], None]:
    """Run the WebSocket server on its own event loop thread.

    Returns a function that stops the server.
    """
    loop = asyncio.new_event_loop()
    broadcaster.set_loop(loop)
    stopped = threading.Event()
    stop_future: Optional[asyncio.Future] = None

    async def run_ws_server():
        nonlocal stop_future
        stop_future = loop.create_future()
        async with ws_serve(
            broadcaster.handler,
            "localhost",
            port,
            process_request=_ws_process_request,
        ):
            await stop_future

    def ws_thread_target():
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(run_ws_server())
        finally:
            loop.close()
            stopped.set()

    threading.Thread(target=ws_thread_target, name="sitebridge-ws", daemon=True).start()

    def stop() -> None:
        def _finish():
            if stop_future is not None and not stop_future.done():
                stop_future.set_result(None)

        if not loop.is_closed():
            loop.call_soon_threadsafe(_finish)
        stopped.wait(timeout=5)

    return stop


# =============================================================================
# Dev Server
# =============================================================================


def start_http_server(directory: Path, http_port: int, ws_port: int) -> HTTPServer:
    """Bind the HTTP server and serve it on a daemon thread.

    Raises:
        OSError: If the port cannot be bound.
    """
    InjectingHandler.ws_port = ws_port
    handler_factory = functools.partial(InjectingHandler, directory=str(directory))
    httpd = HTTPServer(("", http_port), handler_factory)
    threading.Thread(target=httpd.serve_forever, name="sitebridge-http", daemon=True).start()
    return httpd


def cmd_dev(args: argparse.Namespace) -> int:
    """Execute the dev server command."""
    config = site_config_from_args(args)
    http_port = config.port
    ws_port = http_port + 1

    log.header(f"sitebridge dev server: {config.site_root.name}")

    load_environment(config)
    start_image_preprocessing(config)

    broadcaster = ReloadBroadcaster()
    controller = LifecycleController(config, notifier=broadcaster.broadcast)
    controller.install_interrupt_handler()

    stop_ws: Optional[Callable[[], None]] = None
    httpd: Optional[HTTPServer] = None
    observer = None
    try:
        # --- Start WebSocket server ---
        stop_ws = start_ws_server(broadcaster, ws_port)
        log.success(f"WebSocket server: ws://localhost:{ws_port}/ws")

        # --- Start HTTP server ---
        try:
            httpd = start_http_server(config.site_root, http_port, ws_port)
        except OSError as e:
            log.error(f"Could not start HTTP server on port {http_port}: {e}")
            return 1
        log.success(f"HTTP server: http://localhost:{http_port}")

        controller.start()

        handler = SiteEventHandler(config, controller.handle_watch_event)
        observer = create_observer(config, handler)
        if observer is None:
            return 1
        observer.start()

        log.info("")
        log.info("Watching for changes... (Ctrl+C to stop)")
        log.info(f"  Site: http://localhost:{http_port}")
        log.info("")

        while True:
            time.sleep(1)
    finally:
        log.header("Shutting down")

        if observer is not None:
            observer.stop()
            observer.join(timeout=5)

        if httpd is not None:
            httpd.shutdown()
            httpd.server_close()
        if stop_ws is not None:
            stop_ws()
        controller.shutdown()

        log.info(f"Successful builds: {controller.session.builds_succeeded}")
        log.success("Dev server stopped")
