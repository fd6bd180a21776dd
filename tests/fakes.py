from typing import List, Optional, Tuple


class FakeSocket:
    def __init__(self, target: Tuple[str, int], fail_writes: bool = False):
        self.target = target
        self.fail_writes = fail_writes
        self.attempts: List[str] = []
        self.sent: List[str] = []
        self.close_calls = 0

    def send(self, data: bytes) -> int:
        self.attempts.append(data.decode("utf-8"))
        if self.fail_writes:
            raise ConnectionRefusedError("fake write failure")
        self.sent.append(data.decode("utf-8"))
        return len(data)

    def close(self) -> None:
        self.close_calls += 1


class FakeTransport:
    """Socket factory recording every socket it opens."""

    def __init__(self, fail_open: Optional[BaseException] = None, fail_writes: bool = False):
        self.fail_open = fail_open
        self.fail_writes = fail_writes
        self.opened: List[FakeSocket] = []

    def __call__(self, host: str, port: int) -> FakeSocket:
        if self.fail_open is not None:
            raise self.fail_open
        sock = FakeSocket((host, port), fail_writes=self.fail_writes)
        self.opened.append(sock)
        return sock

    @property
    def targets(self) -> List[Tuple[str, int]]:
        return [s.target for s in self.opened]

    @property
    def payloads(self) -> List[str]:
        return [p for s in self.opened for p in s.sent]


class FixedDraws:
    """Stands in for random.Random, returning a fixed sequence of draws."""

    def __init__(self, *draws: float):
        self.draws = list(draws)

    def random(self) -> float:
        return self.draws.pop(0)
