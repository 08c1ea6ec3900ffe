"""Exit codes for CLI commands.

Every command maps its failures onto one of these codes so that scripts
wrapping ``rgpt`` can tell bad input apart from corrupt stored data.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values are part of the CLI contract.

    - 0: Success
    - 1: User error (unknown id, invalid argument, name too short)
    - 2: Environment error (data home cannot be located)
    - 3: Data error (corrupt templates/projects file, invalid context JSON)
    - 5: I/O error (export or store write failed)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    DATA_ERROR = 3
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
