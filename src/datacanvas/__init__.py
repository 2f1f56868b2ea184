"""
DataCanvas: a visual pipeline of file sources, SQL transforms and chart sinks.

The core keeps a directed graph of heterogeneous nodes consistent while
edges come and go and query results arrive asynchronously.
"""

__version__ = "0.1.0"
