from builtins import map as _builtins_map
from concurrent.futures import Executor


class NaiveExecutor(Executor):
    """
    Runs everything inline on the calling thread, used when threads=0
    """
    def map(self, func, *iterables, timeout=None, chunksize=1):
        return _builtins_map(func, *iterables)
