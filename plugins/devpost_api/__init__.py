"""Devpost hackathon listing via the public JSON API.

* :class:`DevpostApiAdapter` - pages of ``/api/hackathons``; challenge pages
  are fetched over plain HTTP only for fields the API left empty.
* :class:`DevpostApiSession` - the :class:`~scout.infra.http.HttpClient`
  backed session it uses.
"""

from .adapter import DevpostApiAdapter  # noqa: F401
from .session import DevpostApiSession  # noqa: F401
