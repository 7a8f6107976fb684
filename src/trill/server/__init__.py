"""Request pipeline — ASGI handling, dispatch, error handling, response sending."""
