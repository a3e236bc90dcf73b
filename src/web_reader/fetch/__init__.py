"""
Fetch module for the web reader.

Downloads source documents and article images over HTTP.
"""

from web_reader.fetch.client import DocumentFetcher, FetchedDocument

__all__ = [
    "DocumentFetcher",
    "FetchedDocument",
]
