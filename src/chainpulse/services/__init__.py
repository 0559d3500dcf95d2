"""Analytics store services."""
