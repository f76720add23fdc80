"""Core discovery engine: version detection, pattern matching and traversal."""
