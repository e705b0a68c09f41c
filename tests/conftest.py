import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from GazeHeatmap.core.errors import EngineUnavailable
from GazeHeatmap.engine.adapter import EngineOptions, GazeEngineAdapter


class FakeEngine:
    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.options = EngineOptions()
        self.callback = None
        self.clicks = []
        self.begun = False
        self.paused = False

    def configure(self, options):
        self.options = options

    def begin(self):
        if self.fail_with is not None:
            raise self.fail_with
        self.begun = True

    def pause(self):
        self.paused = True

    def set_sample_callback(self, callback):
        self.callback = callback

    def accuracy(self):
        return 12.5

    def record_click(self, x, y):
        self.clicks.append((x, y))

    def emit(self, x, y, ts=0):
        if self.callback is not None:
            self.callback(x, y, ts)


class FakeClock:
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


class FakeScheduler:
    def __init__(self):
        self.calls = []

    def __call__(self, delay_ms, callback):
        self.calls.append((delay_ms, callback))

    def fire(self, index=-1):
        self.calls[index][1]()


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def ready_adapter(engine):
    adapter = GazeEngineAdapter(engine)
    assert adapter.start()
    return adapter


@pytest.fixture
def clock():
    return FakeClock(1_000)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def unavailable_engine():
    return FakeEngine(fail_with=EngineUnavailable("no camera"))


@pytest.fixture(scope="session")
def qapp():
    QtWidgets = pytest.importorskip("PyQt6.QtWidgets")
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app
