"""HTTP surface for the analytics store."""
