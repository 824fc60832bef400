class SingleFloat(float):
    """
    Marker for a float that the tuple codec stores in single precision.

    Plain Python floats are encoded as doubles.
    """

    def __repr__(self) -> str:
        return f"SingleFloat({float(self)!r})"
