"""Typed errors for pullbridge."""


class PullBridgeError(Exception):
    """Base exception for all pullbridge errors."""


class UnknownSessionError(PullBridgeError):
    """Raised when a data/end event names a session absent from the BlobStore."""

    def __init__(self, session: str) -> None:
        """Initialize with the unknown session identifier."""
        self.session = session
        super().__init__(f"Unknown blob session: {session}")


class WrongBlobKindError(PullBridgeError):
    """Raised when an event targets a blob of the other kind (unnamed vs named)."""

    def __init__(self, session: str, expected: str, actual: str) -> None:
        """Initialize with the session and the expected/actual blob kinds."""
        self.session = session
        self.expected = expected
        self.actual = actual
        super().__init__(f"Blob {session} is {actual}, expected {expected}")


class OutOfOrderChunkError(PullBridgeError):
    """Raised when a chunk index does not immediately follow the last accepted one."""

    def __init__(self, session: str, expected: int, actual: int) -> None:
        """Initialize with the session and the expected/received chunk index."""
        self.session = session
        self.expected = expected
        self.actual = actual
        super().__init__(f"Out-of-order chunk for {session}: expected index {expected}, got {actual}")


class BlobNotFoundError(PullBridgeError):
    """Raised when a patch names a source blob that is not in the BlobStore."""

    def __init__(self, session: str) -> None:
        """Initialize with the missing blob's session identifier."""
        self.session = session
        super().__init__(f"Patch source blob not found: {session}")


class PatchSourceMissingError(PullBridgeError):
    """Raised when a patch carries neither a blob session nor a positive zero-fill size."""

    def __init__(self, filename: str) -> None:
        """Initialize with the remote filename of the patch target."""
        self.filename = filename
        super().__init__(f"Patch for {filename} has no usable source")


class SessionInUseError(PullBridgeError):
    """Raised when a begin event reuses a session that still owns an open file."""

    def __init__(self, session: str) -> None:
        """Initialize with the reused session identifier."""
        self.session = session
        super().__init__(f"Blob session still open: {session}")


class PathEscapeError(PullBridgeError):
    """Raised when a remote path maps outside the local output directory."""

    def __init__(self, remote_path: str) -> None:
        """Initialize with the offending remote path."""
        self.remote_path = remote_path
        super().__init__(f"Remote path resolves outside the output directory: {remote_path}")


class ChannelClosedError(PullBridgeError):
    """Raised when the instrumentation channel can no longer carry replies."""


class ContextAbortedError(PullBridgeError):
    """Raised to the orchestrator after a processing context faulted."""

    def __init__(self, cause: BaseException) -> None:
        """Initialize with the fault that aborted the context."""
        self.cause = cause
        super().__init__(f"Processing context aborted: {cause}")
