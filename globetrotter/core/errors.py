from __future__ import annotations


class GlobetrotterError(RuntimeError):
    pass


class InsufficientPoolError(GlobetrotterError):
    """The destination pool cannot produce a full option set."""


class EmptyStoreError(GlobetrotterError):
    pass


class RenderUnavailableError(GlobetrotterError):
    """Font resource or imaging backend missing; sharing is degraded, gameplay is not."""


class SessionNotFoundError(GlobetrotterError):
    pass


class UsernameTakenError(GlobetrotterError):
    pass
