"""Kuvaajat - marketplace backend for photography and videography jobs."""

__version__ = "0.1.0"
