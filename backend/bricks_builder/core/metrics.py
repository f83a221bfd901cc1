"""
Prometheus metrics configuration
"""
from prometheus_client import Counter, Histogram

# ============================================================================
# Agent Execution Metrics
# ============================================================================

agent_executions_total = Counter(
    'agent_executions_total',
    'Total number of agent executions',
    ['agent_type', 'status']  # status: 'success', 'validation_error', 'timeout', 'error'
)

agent_execution_duration_seconds = Histogram(
    'agent_execution_duration_seconds',
    'Agent execution duration in seconds',
    ['agent_type'],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)
)

agent_confidence = Histogram(
    'agent_confidence',
    'Confidence reported by successful agent executions',
    ['agent_type'],
    buckets=(0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0)
)

# ============================================================================
# Text Generation Metrics
# ============================================================================

text_generation_requests_total = Counter(
    'text_generation_requests_total',
    'Total number of text generation calls',
    ['generator', 'status']  # status: 'success', 'cached', 'error', 'timeout', 'cancelled'
)

text_generation_duration_seconds = Histogram(
    'text_generation_duration_seconds',
    'Text generation call duration in seconds',
    ['generator'],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0)
)

# ============================================================================
# Rate Limiting Metrics
# ============================================================================

rate_limit_rejections_total = Counter(
    'rate_limit_rejections_total',
    'Total number of requests rejected by a rate limiter',
    ['scope']
)

# ============================================================================
# Database Metrics
# ============================================================================

db_queries_total = Counter(
    'db_queries_total',
    'Total number of database queries',
    ['operation']  # operation: 'select', 'insert', 'update', 'delete', ...
)

db_query_duration_seconds = Histogram(
    'db_query_duration_seconds',
    'Database query duration in seconds',
    ['operation'],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0)
)
