import asyncio
import time


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


class CountingScanner:
    """Interface scanner stand-in that records how often it is called."""

    def __init__(self, addresses=()):
        self.addresses = set(addresses)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return set(self.addresses)


async def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)
