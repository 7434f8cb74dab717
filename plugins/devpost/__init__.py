"""Devpost hackathon listing, rendered in a headless browser.

* :class:`DevpostAdapter` - listing tiles from ``/hackathons`` plus the
  challenge page of every tile that survives filtering.
"""

from .adapter import DevpostAdapter  # noqa: F401
