"""Domain services: fixture loading, appointment derivations, formatting and page helpers."""
