from prometheus_client import Counter, Histogram

from mockwarp.logging import logger

# --- Prometheus Metrics Definition ---

# Inbound requests, labelled by upper-cased HTTP method.
requests_total = Counter(
    "mockwarp_requests_total",
    "Total number of requests received by the mock engine",
    ["method"],
)

# Responses handed to the dispatcher, labelled by the status code of the compiled mock.
responses_total = Counter(
    "mockwarp_responses_total",
    "Total number of mock responses dispatched",
    ["status"],
)

# Requests for which no mock file existed and the default 404 was served.
mock_not_found_total = Counter(
    "mockwarp_mock_not_found_total",
    "Total number of requests answered with the default Not Found response",
)

# Failures that turned a request into a 500 (bad status line, template syntax, unreadable file).
mock_errors_total = Counter(
    "mockwarp_mock_errors_total",
    "Total number of mock compilation errors",
    ["error_type"],
)

# Time spent resolving, reading and compiling a mock, excluding the artificial delay.
compile_latency_seconds = Histogram(
    "mockwarp_compile_latency_seconds",
    "Time taken to resolve and compile a mock definition",
    buckets=[0.001, 0.002, 0.005, 0.01, 0.02, 0.05, 0.1, 0.2, 0.5, 1.0],
)

# Artificial delays requested through Response-Delay.
response_delay_seconds = Histogram(
    "mockwarp_response_delay_seconds",
    "Artificial response delay requested by mock definitions",
    buckets=[0, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

# Delayed responses abandoned because the client went away first.
cancelled_responses_total = Counter(
    "mockwarp_cancelled_responses_total",
    "Total number of delayed responses cancelled by a client disconnect",
)


def log_metrics_error(metric_name: str, error: Exception) -> None:
    """
    Logs an error if there's an issue with recording a metric.

    Args:
        metric_name (str): Name of the metric that failed to record.
        error (Exception): The specific exception that occurred during recording.
    """
    logger.error(f"Failed to record metric {metric_name}: {str(error)}", exc_info=True)


def record_request(method: str) -> None:
    try:
        requests_total.labels(method=method).inc()
    except Exception as e:
        log_metrics_error("requests_total", e)


def record_response(status: int) -> None:
    try:
        responses_total.labels(status=str(status)).inc()
    except Exception as e:
        log_metrics_error("responses_total", e)


def record_mock_not_found() -> None:
    try:
        mock_not_found_total.inc()
    except Exception as e:
        log_metrics_error("mock_not_found_total", e)


def record_mock_error(error_type: str) -> None:
    """
    Records a compilation failure. The label is the exception class name,
    e.g. "MalformedStatusLine".
    """
    try:
        mock_errors_total.labels(error_type=error_type).inc()
    except Exception as e:
        log_metrics_error("mock_errors_total", e)


def observe_compile_latency(duration: float) -> None:
    try:
        compile_latency_seconds.observe(duration)
    except Exception as e:
        log_metrics_error("compile_latency_seconds", e)


def observe_response_delay(delay_ms: int) -> None:
    try:
        response_delay_seconds.observe(delay_ms / 1000)
    except Exception as e:
        log_metrics_error("response_delay_seconds", e)


def record_cancelled_response() -> None:
    try:
        cancelled_responses_total.inc()
    except Exception as e:
        log_metrics_error("cancelled_responses_total", e)
