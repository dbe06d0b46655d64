"""
Shared helpers for external provider adapters.
"""
import hashlib
from enum import Enum


class ProviderMode(Enum):
    """
    Which path an adapter executes.

    LIVE talks to the real provider. SIMULATED returns deterministic synthetic
    data and performs no network I/O; it is the development fallback used when
    no credentials are configured.
    """
    LIVE = 'live'
    SIMULATED = 'simulated'

    @classmethod
    def resolve(cls, explicit=None, has_credentials=False):
        """
        Pick the mode for an adapter.

        An explicit value ('live' / 'simulated' or a ProviderMode) wins;
        otherwise LIVE when credentials are present, SIMULATED when not.
        """
        if explicit:
            return explicit if isinstance(explicit, cls) else cls(str(explicit).lower())
        return cls.LIVE if has_credentials else cls.SIMULATED


def simulated_id(prefix, *parts):
    """
    Build a deterministic synthetic identifier from the given parts.

    The same inputs always give the same identifier, so simulated runs are
    reproducible in tests.
    """
    unique_string = ':'.join(str(part) for part in parts)
    digest = hashlib.sha256(unique_string.encode()).hexdigest()
    return f"sim_{prefix}_{digest[:16]}"
