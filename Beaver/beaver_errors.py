"""
Beaver Protocol Errors

Every fault a caller can observe while driving the dealer or the two parties.
A misused protocol object raises one of these instead of quietly producing a
meaningless bit.
"""


class BeaverProtocolError(RuntimeError):
    """Base class for protocol faults."""


class NotInitialized(BeaverProtocolError):
    """A party or the dealer was used before its setup step ran."""


class ProtocolExhausted(BeaverProtocolError):
    """send() or receive() was called after the last round."""


class OutputNotReady(BeaverProtocolError):
    """output() was called before the output share arrived."""


class TripleReused(BeaverProtocolError):
    """A dealer triple was about to be consumed a second time."""


class OutOfSequence(BeaverProtocolError):
    """A call arrived in an order the round convention cannot accept."""


class InvalidInput(ValueError):
    """A party's private input does not fit in its input wires."""


class AlreadyInitialized(BeaverProtocolError):
    """init() was called a second time on the same party."""
