from .page_source import PageSourcePort
from .transport import PlayerSourcePort, SitePort, TransportPort

__all__ = ["PageSourcePort", "PlayerSourcePort", "SitePort", "TransportPort"]
