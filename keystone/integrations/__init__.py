"""Store and cache integrations."""
