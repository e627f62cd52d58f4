import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from microwave_link.drivers.arduino_driver import SerialLink  # noqa: E402
from microwave_link.drivers.sim_device import SimulatedMicrowave  # noqa: E402


class FakeClock:
    """Monotonic clock that only moves when something sleeps or blocks on it."""

    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += max(0.0, seconds)


class ScriptedSerial:
    """pyserial stand-in that replays timed chunks against a FakeClock.

    ``chunks`` is a list of ``(delay_s, data)``; each delay is relative to the
    previous chunk (the first to construction time). ``read`` blocks, i.e.
    advances the clock, until data has arrived or ``timeout`` runs out.
    """

    def __init__(self, clock: FakeClock, chunks=(), **_settings):
        self.clock = clock
        self.is_open = True
        self._timeout = None
        self.timeout_sets = 0
        self.writes = []
        self.read_error = None
        self.write_error = None
        self._pending = []
        t = clock.now
        for delay, data in chunks:
            t += delay
            self._pending.append((t, bytes(data)))

    @property
    def timeout(self):
        return self._timeout

    @timeout.setter
    def timeout(self, value):
        self.timeout_sets += 1
        self._timeout = value

    @property
    def unread(self) -> bytes:
        return b"".join(data for _, data in self._pending)

    @property
    def in_waiting(self) -> int:
        return sum(len(data) for t, data in self._pending if t <= self.clock.now)

    def read(self, size: int = 1) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        timeout = self.timeout or 0.0
        if not self._pending or self._pending[0][0] > self.clock.now + timeout:
            self.clock.now += timeout
            return b""
        if self._pending[0][0] > self.clock.now:
            self.clock.now = self._pending[0][0]
        out = bytearray()
        while self._pending and self._pending[0][0] <= self.clock.now and len(out) < size:
            arrival, data = self._pending.pop(0)
            take = data[:size - len(out)]
            out += take
            if len(take) < len(data):
                self._pending.insert(0, (arrival, data[len(take):]))
        return bytes(out)

    def write(self, data: bytes) -> int:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(bytes(data))
        return len(data)

    def close(self):
        self.is_open = False


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scripted_link(clock):
    """Build an open SerialLink (no drain) over a ScriptedSerial."""

    def _make(chunks=(), **link_kwargs):
        ser = ScriptedSerial(clock, chunks)
        link = SerialLink(serial_factory=lambda **kw: ser, clock=clock, sleep=clock.sleep, **link_kwargs)
        link.open("/dev/ttyTEST", 115200, drain=False)
        return link, ser

    return _make


@pytest.fixture
def sim_link_factory(clock):
    """link_factory for api.open_controller backed by SimulatedMicrowave.

    Created devices are collected in ``factory.devices``; device keyword
    arguments go in ``factory.device_kwargs``.
    """

    def serial_factory(**kw):
        device = SimulatedMicrowave(sleep=clock.sleep, **factory.device_kwargs, **kw)
        factory.devices.append(device)
        return device

    def factory(**kw):
        return SerialLink(serial_factory=serial_factory, clock=clock, sleep=clock.sleep, **kw)

    factory.devices = []
    factory.device_kwargs = {}
    return factory


@pytest.fixture
def make_serial(clock):
    def _make(chunks=()):
        return ScriptedSerial(clock, chunks)

    return _make
