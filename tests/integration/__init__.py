"""
Integration tests for scriptbuild.

These tests run real build scripts end to end: extraction, compilation with
the Python toolchain, artifact caching and execution.
"""
