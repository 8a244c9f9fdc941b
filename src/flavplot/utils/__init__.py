"""Utility functions and tools used across the flavplot package.

**Core Utilities:**
- `config`: YAML configuration loading (includes, dot-notation overrides)
- `factory`: Instantiate classes from configuration blocks
- `logger`: Logging configuration
- `errors`: Exception hierarchy
- `enums`: Enumerated categories (flavours, tags, vertex buckets, charges)
- `globals`: Constants shared across the package
"""
