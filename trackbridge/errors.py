"""Error kinds raised across the sync service"""


class TrackBridgeError(Exception):
    """Base class for all service errors"""


class ConfigInvalid(TrackBridgeError):
    """Required settings are missing or malformed"""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "invalid configuration")


class CredentialInvalid(TrackBridgeError):
    """An upstream or downstream credential check failed"""


class TransportFailure(TrackBridgeError):
    """A single HTTP call to a tracker failed"""


class SignatureInvalid(TrackBridgeError):
    """A webhook payload is unsigned or its signature does not match"""


class MissingMappings(TrackBridgeError):
    """Incremental sync requested before any issue was imported"""
