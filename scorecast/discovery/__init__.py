from .discovery_client import DiscoveryClient as DiscoveryClient
from .discovery_protocol import (
    MODE_PREFIX as MODE_PREFIX,
    parse_reply as parse_reply,
    to_reply as to_reply,
)
from .discovery_responder import DiscoveryResponder as DiscoveryResponder
