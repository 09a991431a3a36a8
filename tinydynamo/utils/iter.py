import typing as ty

T = ty.TypeVar("T")


class Reiterable(ty.Iterable[T]):
    """A lazy, finite sequence that can be iterated more than once.

    Nothing happens until you iterate. Each new iteration calls the
    generator function again, so each one sees the state of the world
    at the time it started.
    """

    def __init__(self, generator_func: ty.Callable[[], ty.Iterator[T]]):
        self._generator_func = generator_func

    def __iter__(self) -> ty.Iterator[T]:
        return iter(self._generator_func())
