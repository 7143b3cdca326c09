"""
fibserve error module
"""


class FibServeException(Exception):
    """Raised for configuration and command-line misuse.

    The computation itself never raises: malformed paths resolve to the
    default index and the accumulator is total over its clamped domain.
    """

    def __init__(self, msg: str):
        self.msg = msg
        super().__init__(msg)


def fail(msg: str) -> None:
    """Raise a fibserve exception with a message"""
    raise FibServeException(msg)
