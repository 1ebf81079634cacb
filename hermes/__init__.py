"""Hermes: turns a product idea into a generated source tree.

A short conversation captures the idea, a refine step turns it into a
technical description, and a sequence of stage agents generate the files,
all through a remote chat completion endpoint.
"""

__version__ = "1.0.0"
