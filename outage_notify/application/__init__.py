"""Application layer: eligibility, rendering, debounce and dispatch."""
