"""
Co-occurrence item-similarity package.

Modules are grouped into data indexing and alignment, similarity kernels,
output writers, pipelines, and utilities.
"""
