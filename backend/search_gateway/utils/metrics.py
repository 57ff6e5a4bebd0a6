# /search_gateway/utils/metrics.py

from prometheus_client import Counter, Histogram

# All Prometheus metrics for the gateway live here.

# Catalog backend
backend_requests_counter = Counter('catalog_backend_requests_total', 'Requests sent to the catalog search backend', ['metric', 'status'])
inflight_coalesced_counter = Counter('catalog_inflight_coalesced_total', 'Requests that joined an identical in-flight request', ['metric'])

# Search behaviour
compatibility_resolutions_counter = Counter('compatibility_resolutions_total', 'Canonical query resolutions', ['outcome'])
search_stats_counter = Counter('product_searches_total', 'Successful product searches (term or browse)', ['kind'])

# Performance Metrics
response_time_histogram = Histogram('response_time_seconds', 'Response time in seconds', ['endpoint'])
cache_operations = Counter('cache_operations_total', 'Cache operations', ['operation', 'status'])
