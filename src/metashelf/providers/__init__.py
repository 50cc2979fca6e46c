"""Provider framework — Base class, registry and errors for metadata source plugins.

Built-in plugins live in ``metashelf/plugins``:
  - example: deterministic mock data, for demos and integration checks
  - librivox: LibriVox public-domain audiobooks (public JSON API)

Add a directory with ``config.json`` and ``provider.py`` (exporting a
``BaseProvider`` subclass, ideally as ``Provider``) to plug in a new source.
"""
