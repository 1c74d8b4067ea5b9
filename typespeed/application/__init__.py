"""Application layer: HTTP API, WebSocket handling and configuration."""
