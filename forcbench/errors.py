class ForcBenchError(Exception):
    """Base class for every failure that aborts a benchmarking run."""


class DiscoveryError(ForcBenchError):
    pass


class ManifestError(ForcBenchError):
    pass


class SpawnError(ForcBenchError):
    pass


class ProtocolError(ForcBenchError, ValueError):
    """The compiler printed a marker the harness cannot reconcile."""
