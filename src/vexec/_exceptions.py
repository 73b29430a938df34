INTERNAL_FAILURE_EXIT_CODE = 255


class BaseVexecException(Exception):
    """
    Base exception used for exceptions thrown by vexec.

    :param message: A user-facing message explaining what happened.
    :param exit_code:

        the exit code to use for the vexec process if the exception is not
        caught.

        All internal failures use 255, which is what a C program returning
        -1 from ``main`` ends up with.
    """

    def __init__(
        self, message: str, exit_code: int = INTERNAL_FAILURE_EXIT_CODE
    ) -> None:
        super().__init__(message)
        self._message = message
        self.exit_code = exit_code

    def __str__(self) -> str:
        return self._message


class ConfigurationException(BaseVexecException):
    pass


class LaunchException(BaseVexecException):
    def __init__(self, program: str, reason: str) -> None:
        super().__init__(f"{program}: {reason}")
        self.program = program


class WaitException(BaseVexecException):
    def __init__(self, pid: int, reason: str) -> None:
        super().__init__(
            f"Unable to wait for the child process {pid}: {reason}"
        )


class JoinException(BaseVexecException):
    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Unable to join the reader for {name}: {reason}")
