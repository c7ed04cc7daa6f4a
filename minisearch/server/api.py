"""
HTTP search API built on aiohttp.web.
"""

import logging
import time
from typing import Optional

from aiohttp import web

from ..index.inverted_index import InvertedIndex
from ..index.ranker import IndexHolder, search
from ..utils.monitoring import CrawlerMonitor, get_monitor


logger = logging.getLogger(__name__)

INDEX_HOLDER_KEY = web.AppKey('index_holder', IndexHolder)
MONITOR_KEY = web.AppKey('monitor', CrawlerMonitor)
DEFAULT_LIMIT_KEY = web.AppKey('default_limit', object)


SEARCH_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>MiniSearch</title>
  <style>
    body { font-family: system-ui, sans-serif; max-width: 640px; margin: 2rem auto; padding: 0 1rem; }
    input[type="search"] { width: 100%; padding: 0.5rem; font-size: 1rem; box-sizing: border-box; }
    button { margin-top: 0.5rem; padding: 0.5rem 1rem; font-size: 1rem; cursor: pointer; }
    #results { margin-top: 1.5rem; }
    .hit { padding: 0.5rem 0; border-bottom: 1px solid #eee; }
    .hit a { color: #06c; display: block; }
    .score, .none { font-size: 0.875rem; color: #666; }
  </style>
</head>
<body>
  <h1>MiniSearch</h1>
  <form id="form">
    <input type="search" name="q" id="q" placeholder="Search terms" autofocus>
    <button type="submit">Search</button>
  </form>
  <div id="results"></div>
  <script>
    const form = document.getElementById('form');
    const q = document.getElementById('q');
    const results = document.getElementById('results');
    function render(hit) {
      const div = document.createElement('div');
      div.className = 'hit';
      const a = document.createElement('a');
      a.href = hit.url;
      a.rel = 'noopener';
      a.textContent = hit.title || hit.url;
      const score = document.createElement('span');
      score.className = 'score';
      score.textContent = hit.url + ' (score: ' + hit.score.toFixed(4) + ')';
      div.append(a, score);
      return div;
    }
    form.addEventListener('submit', async (e) => {
      e.preventDefault();
      const query = q.value.trim();
      results.replaceChildren();
      if (!query) { return; }
      try {
        const r = await fetch('/search?q=' + encodeURIComponent(query));
        const hits = await r.json();
        if (hits.length === 0) {
          results.innerHTML = '<p class="none">No results</p>';
        } else {
          results.replaceChildren(...hits.map(render));
        }
      } catch (err) {
        results.innerHTML = '<p class="none">Error: ' + err + '</p>';
      }
    });
  </script>
</body>
</html>
"""


def _parse_limit(raw: Optional[str], default: Optional[int]) -> Optional[int]:
    if raw is None or raw == "":
        return default
    try:
        limit = int(raw)
    except ValueError:
        raise web.HTTPBadRequest(text="limit must be a positive integer")
    if limit < 1:
        raise web.HTTPBadRequest(text="limit must be a positive integer")
    return limit


async def search_handler(request: web.Request) -> web.Response:
    """GET /search?q=terms -> JSON array of {url, title, score}."""
    query = request.query.get('q', '')
    limit = _parse_limit(request.query.get('limit'), request.app[DEFAULT_LIMIT_KEY])
    monitor = request.app[MONITOR_KEY]

    # One snapshot for the whole request, even if the index is swapped meanwhile
    index = request.app[INDEX_HOLDER_KEY].current

    start_time = time.perf_counter()
    results = search(index, query, limit)
    duration = time.perf_counter() - start_time

    monitor.record_search(duration, len(results))
    logger.debug(f"Query {query!r}: {len(results)} results in {duration * 1000:.2f}ms")

    return web.json_response([result.to_dict() for result in results])


async def index_page(request: web.Request) -> web.Response:
    """GET / -> static HTML search form."""
    return web.Response(text=SEARCH_PAGE, content_type='text/html')


async def health_handler(request: web.Request) -> web.Response:
    """GET /health -> basic index information."""
    index = request.app[INDEX_HOLDER_KEY].current
    return web.json_response({
        'status': 'ok',
        'documents': index.doc_count,
        'terms': index.term_count
    })


async def metrics_handler(request: web.Request) -> web.Response:
    """GET /metrics -> Prometheus text exposition."""
    metrics = request.app[MONITOR_KEY].metrics
    if not metrics.enabled:
        raise web.HTTPNotFound(text="Metrics are disabled")
    response = web.Response(body=metrics.export_text())
    response.headers['Content-Type'] = metrics.content_type
    return response


def create_app(index: InvertedIndex, monitor: Optional[CrawlerMonitor] = None,
               default_limit: Optional[int] = None) -> web.Application:
    """Build the search application around a loaded index."""
    monitor = monitor or get_monitor()
    holder = IndexHolder(index)
    monitor.update_index_size(index.doc_count, index.term_count)

    app = web.Application()
    app[INDEX_HOLDER_KEY] = holder
    app[MONITOR_KEY] = monitor
    app[DEFAULT_LIMIT_KEY] = default_limit

    app.router.add_get('/', index_page)
    app.router.add_get('/search', search_handler)
    app.router.add_get('/health', health_handler)
    app.router.add_get('/metrics', metrics_handler)
    return app


def swap_index(app: web.Application, index: InvertedIndex) -> InvertedIndex:
    """Serve a newly built index; returns the one it replaces."""
    previous = app[INDEX_HOLDER_KEY].swap(index)
    app[MONITOR_KEY].update_index_size(index.doc_count, index.term_count)
    logger.info(f"Index swapped: {previous.doc_count} -> {index.doc_count} documents")
    return previous


def run_server(index: InvertedIndex, host: str = "127.0.0.1", port: int = 3000,
               monitor: Optional[CrawlerMonitor] = None, default_limit: Optional[int] = None):
    """Serve until interrupted."""
    app = create_app(index, monitor=monitor, default_limit=default_limit)
    logger.info(f"Listening on http://{host}:{port}")
    web.run_app(app, host=host, port=port, print=None, access_log=None)
