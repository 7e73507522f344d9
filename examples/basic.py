"""Basic usage example for Timberlogs Python SDK."""

import os

from timberlogs import ClientOptions, Environment, TimberlogsClient

# Initialize client
client = TimberlogsClient(
    ClientOptions(
        source="python-example",
        environment=Environment.DEVELOPMENT,
        api_key=os.environ.get("TIMBERLOGS_API_KEY", "tb_your_api_key_here"),
        version="0.1.0",
    )
)

# Send logs
client.info("Server started", {"port": 3000})
client.debug("Connection established")
client.warn("High memory usage", {"rss_mb": 812})

# Error logging with automatic serialization
try:
    raise ValueError("Something went wrong")
except Exception as e:
    client.error("Payment failed", e)

# Session context
with client.with_new_session_id():
    client.info("Request received")
    client.info("Response sent")

# Graceful shutdown (automatic via atexit, but can be called manually)
client.disconnect()
print("Logs flushed successfully")
