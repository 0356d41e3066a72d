"""Prometheus metrics for Closer.

Counters and histograms for the live message path (rate limiting, control
checks, the cache/durable bridge) and for the model-backed side jobs.
"""

from prometheus_client import Counter, Histogram

# Request metrics
REQUEST_COUNT = Counter(
    "closer_request_count_total",
    "Total number of HTTP requests processed",
    labelnames=["endpoint", "status"],
)

TURN_LATENCY = Histogram(
    "closer_turn_latency_seconds",
    "Inbound message pipeline latency in seconds",
    labelnames=["outcome"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# Rate limiting
RATE_LIMIT_DECISIONS = Counter(
    "closer_rate_limit_decisions_total",
    "Rate limit decisions by outcome",
    labelnames=["outcome"],
)

# Pause / suppress checks; outcome includes fail_open / fail_closed
CONTROL_CHECKS = Counter(
    "closer_control_checks_total",
    "Pause and suppress checks by outcome",
    labelnames=["check", "outcome"],
)

CONVERSATION_LOCKS = Counter(
    "closer_conversation_locks_total",
    "Conversation lock acquisitions by outcome",
    labelnames=["outcome"],
)

# State bridge
BRIDGE_CACHE_HITS = Counter(
    "closer_bridge_cache_hits_total",
    "Bridge reads served from the fast store",
)

BRIDGE_CACHE_MISSES = Counter(
    "closer_bridge_cache_misses_total",
    "Bridge reads that fell through to the durable store",
)

BRIDGE_REPOPULATIONS = Counter(
    "closer_bridge_repopulations_total",
    "Fast store entries re-populated from the durable store",
)

DURABLE_WRITE_FAILURES = Counter(
    "closer_durable_write_failures_total",
    "Durable store writes that failed after the fast write succeeded",
    labelnames=["operation"],
)

# Generation shaping
GUARD_INTERVENTIONS = Counter(
    "closer_guard_interventions_total",
    "Responses rewritten by the response guard",
)

PIVOTS = Counter(
    "closer_pivots_total",
    "Pivot instructions emitted by ask category",
    labelnames=["category"],
)

AUTORESPONDERS_DETECTED = Counter(
    "closer_autoresponders_detected_total",
    "Inbound messages recognised as corporate auto-replies",
)

# Model-backed jobs
SUMMARY_REFRESHES = Counter(
    "closer_summary_refreshes_total",
    "Conversation state refreshes by outcome",
    labelnames=["outcome"],
)

CLASSIFICATIONS = Counter(
    "closer_classifications_total",
    "Outcome classifications by label",
    labelnames=["classification"],
)

LLM_TOKENS = Counter(
    "closer_llm_tokens_total",
    "Total LLM tokens used",
    labelnames=["model", "direction"],
)

LLM_CALLS = Counter(
    "closer_llm_calls_total",
    "Model calls by model, job and outcome",
    labelnames=["model", "step", "outcome"],
)

# Background job metrics
WORKFLOW_EXECUTIONS = Counter(
    "closer_workflow_executions_total",
    "Total workflow executions",
    labelnames=["workflow_name", "status"],
)

WORKFLOW_LATENCY = Histogram(
    "closer_workflow_latency_seconds",
    "Workflow execution latency in seconds",
    labelnames=["workflow_name"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0),
)

BACKGROUND_TASK_FAILURES = Counter(
    "closer_background_task_failures_total",
    "Background bookkeeping tasks that raised",
    labelnames=["task"],
)
