"""Build script processing: extraction, incremental compilation, orchestration."""
