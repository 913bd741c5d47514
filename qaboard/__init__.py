"""A questions-and-answers board served as a WSGI application."""

__version__ = "0.1.0"