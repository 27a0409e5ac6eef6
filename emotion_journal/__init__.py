"""
Emotion Journal - user registration and emotion journal entries over HTTP.

This package provides a FastAPI service that stores users and their emotion
journal entries in a document database, plus a small token issuing endpoint
and a command-line client.
"""

__version__ = "0.1.0"
