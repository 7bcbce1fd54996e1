"""Provider-independent services: HTTP, polling, download, model registry."""
