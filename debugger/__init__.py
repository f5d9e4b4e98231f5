"""Code debugger: AI-provider analysis with a deterministic heuristic fallback."""
