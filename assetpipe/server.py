"""Development server with live reload.

The server listens on ``settings.port``. With a ``proxy`` target every
request is logged and forwarded unchanged to the upstream site; without
one the output directory is served as static files. The livereload
script and websocket live on ``settings.ui_port``.

Watches are registered before the server starts; its tornado IOLoop then
runs on a daemon thread and the process stays alive in
``DevServer.wait()`` until it is interrupted.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Tuple
from urllib.parse import quote

import requests
from livereload import Server
from livereload.handlers import LiveReloadHandler
from livereload.watcher import Watcher

from .tasks.context import BuildContext


logger = logging.getLogger(__name__)

# Headers that describe one hop, or that no longer hold once requests
# has decoded the upstream body.
DROPPED_RESPONSE_HEADERS = {
    'connection', 'keep-alive', 'proxy-authenticate', 'proxy-authorization',
    'te', 'trailers', 'transfer-encoding', 'upgrade',
    'content-encoding', 'content-length',
}

# Characters a path segment may carry unescaped
PATH_SAFE_CHARS = "/:@!$&'()*+,;=~"


class ProxyApp:
    """WSGI app forwarding every request to an upstream origin.

    The request path is logged before forwarding; the request itself is
    passed through untouched apart from the Host header.
    """

    def __init__(self, target: str, session: Optional[requests.Session] = None):
        self.target = target.rstrip('/')
        self.session = session or requests.Session()

    @staticmethod
    def request_path(environ) -> str:
        """Path and query as the client sent them.

        ``PATH_INFO`` is already percent-decoded, so the raw request URI is
        used when the server provides one and the path is re-quoted
        otherwise.
        """
        raw = environ.get('RAW_URI') or environ.get('REQUEST_URI')
        if raw:
            return raw
        # WSGI carries the decoded path as latin-1 characters
        path = environ.get('PATH_INFO', '') or '/'
        path = quote(path.encode('latin-1'), safe=PATH_SAFE_CHARS)
        query = environ.get('QUERY_STRING', '')
        return f'{path}?{query}' if query else path

    @staticmethod
    def request_headers(environ) -> dict:
        headers = {}
        for key, value in environ.items():
            if key.startswith('HTTP_'):
                headers[key[5:].replace('_', '-').title()] = value
        if environ.get('CONTENT_TYPE'):
            headers['Content-Type'] = environ['CONTENT_TYPE']
        if environ.get('CONTENT_LENGTH'):
            headers['Content-Length'] = environ['CONTENT_LENGTH']
        headers.pop('Host', None)
        return headers

    def __call__(self, environ, start_response) -> Iterable[bytes]:
        path = self.request_path(environ)
        logger.info(path)

        length = int(environ.get('CONTENT_LENGTH') or 0)
        body = environ['wsgi.input'].read(length) if length else None

        try:
            upstream = self.session.request(
                environ.get('REQUEST_METHOD', 'GET'),
                self.target + path,
                headers=self.request_headers(environ),
                data=body,
                allow_redirects=False,
            )
        except requests.RequestException as e:
            logger.error("Proxy request to %s failed: %s", self.target, e)
            start_response('502 Bad Gateway', [('Content-Type', 'text/plain')])
            return [f'Bad Gateway: {e}'.encode('utf-8')]

        headers: List[Tuple[str, str]] = [
            (name, value) for name, value in upstream.headers.items()
            if name.lower() not in DROPPED_RESPONSE_HEADERS
        ]
        content = upstream.content
        headers.append(('Content-Length', str(len(content))))
        start_response(f'{upstream.status_code} {upstream.reason}', headers)
        return [content]


class LiveReloader:
    """Signal connected browsers through the livereload websocket.

    Paths ending in ``.css`` are injected in place by the livereload
    client; anything else triggers a full page reload. Signals sent
    before the server is serving are dropped.
    """

    def __init__(self, handler: Any = LiveReloadHandler):
        self.handler = handler
        self.active = False

    def reload(self, path: Optional[str] = None) -> None:
        if not self.active:
            return
        self.handler.reload_waiters(path or '*')


class ReactionWatcher(Watcher):
    """Polling watcher that runs callbacks without reloading browsers.

    livereload sends its own full reload for any changed path it reports.
    Reactions send their own signals (a CSS injection for styles), so
    changes are run here and never reported back to the handler. Watches
    without a callback are refused, which keeps the handler from falling
    back to polling the working directory when no rule is registered.
    """

    def watch(self, path, func=None, delay=0, ignore=None):
        if func is None:
            logger.debug("Not watching %s: no callback", path)
            return
        super().watch(path, func, delay, ignore=ignore)

    def examine(self):
        if self._changes:
            # Startup notice queued by Server.serve
            return self._changes.pop()
        super().examine()
        return None, None


@dataclass
class DevServer:
    """Reverse proxy / static server with live reload.

    Example:
        dev = DevServer(context)
        dev.watch('src/scss', rebuild_styles)
        dev.start()
        dev.wait()
    """

    context: BuildContext
    server_factory: Callable[..., Any] = Server
    host: str = '127.0.0.1'

    reloader: LiveReloader = field(default_factory=LiveReloader)
    _server: Any = field(init=False, repr=False, default=None)
    _thread: Optional[threading.Thread] = field(init=False, repr=False, default=None)

    def _create(self) -> Any:
        proxy = self.context.settings.proxy
        app = ProxyApp(proxy) if proxy else None
        return self.server_factory(app=app, watcher=ReactionWatcher())

    @property
    def server(self) -> Any:
        if self._server is None:
            self._server = self._create()
        return self._server

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _serve(self) -> None:
        # tornado needs an event loop on the serving thread
        asyncio.set_event_loop(asyncio.new_event_loop())
        settings = self.context.settings
        self.reloader.active = True
        try:
            self.server.serve(
                port=settings.port,
                liveport=settings.ui_port,
                host=self.host,
                root=None if settings.proxy else str(settings.dist),
                debug=False,
                live_css=True,
            )
        finally:
            self.reloader.active = False

    def start(self) -> None:
        """Start serving on a daemon thread and return immediately."""
        if self.running:
            return
        settings = self.context.settings
        if settings.proxy:
            logger.info("Proxying http://%s:%d -> %s",
                        self.host, settings.port, settings.proxy)
        else:
            logger.info("Serving %s on http://%s:%d",
                        self.context.display_path(settings.dist),
                        self.host, settings.port)
        self._thread = threading.Thread(
            target=self._serve, name='assetpipe-server', daemon=True,
        )
        self._thread.start()

    def watch(self, path: str, func: Callable[[], Any],
              ignore: Optional[Callable[[str], bool]] = None) -> None:
        """Run func whenever path changes.

        Raises:
            RuntimeError: If the server is already serving
        """
        if self.running:
            raise RuntimeError("Watches must be registered before the server starts")
        self.server.watch(path, func, ignore=ignore)

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the serving thread exits."""
        if self._thread is not None:
            self._thread.join(timeout)
