from arenagod.riot.client import RiotClient, RiotClientConfig, backoff_delay

__all__ = [
    "RiotClient",
    "RiotClientConfig",
    "backoff_delay",
]
