"""HTTP surface for the risk engine."""
