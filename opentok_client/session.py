"""Session entities returned by :meth:`opentok_client.client.OpenTok.create_session`."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .client import OpenTok


@dataclass(frozen=True)
class Session:
    """A communication channel created by the OpenTok service.

    ``media_mode``, ``location`` and ``archive_mode`` hold the values that were
    requested, since the service does not echo them back. ``api`` refers to the
    client that created the session.
    """

    session_id: str
    media_mode: str
    api: "OpenTok" = field(repr=False, compare=False)
    location: Optional[str] = None
    archive_mode: Optional[str] = None

    def generate_token(self, options: Any = None, **kwargs: Any) -> Optional[str]:
        """Mint a token for this session using the owning client's credentials."""

        return self.api.generate_token(self.session_id, options, **kwargs)
