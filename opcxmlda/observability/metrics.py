"""Prometheus metrics for opcxmlda.

Provides counters and histograms for HTTP exchanges and namespace browsing.
"""

from prometheus_client import Counter, Histogram

# HTTP exchange metrics
HTTP_EXCHANGES = Counter(
    "opcxmlda_http_exchanges_total",
    "Total number of traced HTTP exchanges",
    labelnames=["method", "outcome"],
)

HTTP_EXCHANGE_LATENCY = Histogram(
    "opcxmlda_http_exchange_seconds",
    "Time from request start to response headers",
    labelnames=["method"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

CAPTURE_TRUNCATIONS = Counter(
    "opcxmlda_capture_truncations_total",
    "Number of body previews cut at the capture budget",
    labelnames=["direction"],
)

# Browse metrics
BROWSE_PAGES = Counter(
    "opcxmlda_browse_pages_total",
    "Total number of Browse pages fetched",
)

BROWSE_NODES_EXPANDED = Counter(
    "opcxmlda_browse_nodes_expanded_total",
    "Total number of nodes whose children were fetched",
)
