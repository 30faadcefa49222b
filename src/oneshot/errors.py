"""
=============================================================================
FATAL SYSTEM CALL FAILURES
=============================================================================

There is exactly ONE kind of error in this program: a system call failed.

    socket()  bind()  listen()  accept()  recv()  send()
        │        │        │         │        │       │
        └────────┴────────┴────┬────┴────────┴───────┘
                               │ OSError
                               ▼
                   FatalSystemCallFailure(phase, cause)
                               │
                               ▼
              "ERROR on binding: Address already in use"
                          (stderr, exit 1)

No retries, no recovery. The phase tells the user WHICH call failed, the
cause tells them WHY (the OS error text, like perror() would print).

=============================================================================
"""

from enum import Enum


class Phase(Enum):
    """The system call that failed, with its diagnostic wording."""
    SOCKET = "opening socket"
    BIND = "on binding"
    LISTEN = "on listening"
    ACCEPT = "on accept"
    READ = "reading from socket"
    WRITE = "writing to socket"


class FatalSystemCallFailure(Exception):
    """
    A socket system call failed and the program must stop.

    Attributes:
        phase: Which call failed.
        cause: The underlying exception (usually an OSError).
    """

    def __init__(self, phase: Phase, cause: BaseException):
        self.phase = phase
        self.cause = cause
        super().__init__(self.message)

    @property
    def reason(self) -> str:
        """The system error text, e.g. 'Address already in use'."""
        strerror = getattr(self.cause, "strerror", None)
        return strerror if strerror else str(self.cause)

    @property
    def message(self) -> str:
        return f"ERROR {self.phase.value}: {self.reason}"

    def __str__(self) -> str:
        return self.message
