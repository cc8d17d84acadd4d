"""Server-side plumbing: error translation and ASGI response sending."""
