"""Advanced features example for Timberlogs Python SDK."""

import os

from timberlogs import (
    ClientOptions,
    Environment,
    IngestRawOptions,
    LogEntry,
    LogLevel,
    RawFormat,
    RetryConfig,
    TimberlogsClient,
    TimberlogsError,
)


def handle_error(error: TimberlogsError) -> None:
    print(f"Background flush failed: {error}")


# Full configuration
client = TimberlogsClient(
    ClientOptions(
        source="checkout-service",
        environment=Environment.PRODUCTION,
        api_key=os.environ.get("TIMBERLOGS_API_KEY", "tb_your_api_key_here"),
        version="1.0.0",
        # Default context
        user_id="user-42",
        dataset="checkout",
        # Batching
        batch_size=50,
        flush_interval_ms=5000,
        min_level=LogLevel.INFO,
        # Retry with exponential backoff
        retry=RetryConfig(max_retries=3, initial_delay_ms=500, max_delay_ms=2000),
        on_error=handle_error,
        requeue_failed_batches=False,
        debug=True,
    )
)

# Fully specified entry
client.log(
    LogEntry(
        level=LogLevel.WARN,
        message="Slow upstream",
        data={"upstream": "payments", "latency_ms": 1840},
        request_id="req-123",
        tags=["latency", "payments"],
        ip_address="10.0.0.1",
        country="GB",
    )
)

# Dynamic context
client.set_session_id("sess-abc")
client.info("Session started")
client.set_session_id(None)  # Clear

# Flows
flow = client.flow("checkout")
flow.info("Cart loaded", {"items": 3})
flow.info("Payment authorized")
flow.log_with_level(LogLevel.INFO, "Order placed", tags=["order"])
print(f"Flow {flow.id} is at step {flow.step_index}")

# Raw ingestion
client.ingest_raw(
    "level,message\ninfo,imported from csv",
    RawFormat.CSV,
    IngestRawOptions(source="csv-import", dataset="imports"),
)

# Manual flush
try:
    client.flush()
except TimberlogsError as e:
    print(f"Flush failed: {e}")

# Metrics
metrics = client.get_metrics()
print(f"Logs sent: {metrics.logs_sent}")
print(f"Logs dropped: {metrics.logs_dropped}")
print(f"Errors: {metrics.errors}")
print(f"Retries: {metrics.retries}")
print(f"Avg latency: {metrics.avg_latency_ms}ms")

# Close
client.disconnect()
