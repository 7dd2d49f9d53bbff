from dynakube.handlers import dynakube, probes

__all__ = [
    "dynakube",
    "probes",
]
