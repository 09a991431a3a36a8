"""For singleton resources that you want to load on first use."""
import threading
import typing as ty

L = ty.TypeVar("L")


class Lazy(ty.Generic[L]):
    """A process-wide Lazy resource.

    The loader is called at most once per reset, no matter how many
    threads race for the first access.
    """

    def __init__(self, loader_func: ty.Callable[[], L]):
        self.loader_func = loader_func
        self._lock = threading.Lock()
        self._value: ty.Optional[L] = None
        self._loaded = False

    def __call__(self) -> L:
        if not self._loaded:
            with self._lock:
                if not self._loaded:
                    self._value = self.loader_func()
                    self._loaded = True
        return ty.cast(L, self._value)

    def reset(self) -> None:
        """The next access will call the loader again."""
        with self._lock:
            self._value = None
            self._loaded = False
