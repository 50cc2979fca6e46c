"""metashelf Python SDK — Client library for the metashelf API.

Quick start::

    from metashelf.client import MetashelfClient

    client = MetashelfClient("http://localhost:3000")
    result = client.search("librivox", "Pride and Prejudice", "Austen")
"""

from metashelf.client.client import AsyncMetashelfClient, MetashelfAPIError, MetashelfClient

__all__ = ["AsyncMetashelfClient", "MetashelfAPIError", "MetashelfClient"]
