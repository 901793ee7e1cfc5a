"""Infrastructure layer - HTTP transport and configuration."""
