"""Major League Hacking season calendar.

* :class:`MlhAdapter` - every event card of one season page, with a tiered
  best-effort read of each event's own (external) site.
"""

from .adapter import MlhAdapter  # noqa: F401
