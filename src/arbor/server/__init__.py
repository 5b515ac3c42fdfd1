"""The HTTP layer: route table, layer pipeline, error path, ASGI glue."""
