"""Source adapters discovered by :mod:`scout.plugin_loader`.

Each sub-package exposes one :class:`~scout.interfaces.SourceAdapter`
subclass whose ``name`` is the key callers pass as ``source``.
"""
