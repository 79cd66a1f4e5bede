class EndToken:
    """Marks the end of a gaze sample stream on the runner's queue."""
    __slots__ = ()

    def __repr__(self) -> str:
        return "<EndOfSamples>"

_END = EndToken()
