"""Transport glue: ASGI response sending and listener selection."""
