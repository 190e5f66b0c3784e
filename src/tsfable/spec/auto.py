"""The ``AUTO`` sentinel marking a sub-option that the fitter must choose."""


class Automatic:
    """
    Singleton marking an option left for automatic selection.

    An option value is either ``AUTO`` or a concrete setting. Use
    :func:`is_auto` rather than comparing against strings.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "AUTO"

    def __reduce__(self):
        return (Automatic, ())

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


AUTO = Automatic()


def is_auto(value) -> bool:
    """Return True when ``value`` is the automatic-selection sentinel."""
    return value is AUTO
