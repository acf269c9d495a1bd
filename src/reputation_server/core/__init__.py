"""Service facade and its event bus."""
