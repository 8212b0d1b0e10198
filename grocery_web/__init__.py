"""Flask web layer for the price comparison pipeline."""
