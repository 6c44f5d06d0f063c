"""pytest configuration file."""

import pytest, os, logging

from wrapreel.devtools.manual_clock import ManualTimerSource
from wrapreel.sequencer import (
    Item,
    ItemSupply,
    SequencerController,
    SequencerEventEmitter,
)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (may take several seconds)"
    )
    config.addinivalue_line(
        "markers", "qt: marks tests that run a real Qt event loop"
    )


@pytest.fixture(autouse=True, scope="session")
def _quiet_env_and_logs():
    os.environ.pop("WRAPREEL_TIME_SCALE", None)
    logging.getLogger("wrapreel.sequencer.events").setLevel(logging.INFO)
    yield


@pytest.fixture(scope="session")
def qapp():
    from PyQt6.QtCore import QCoreApplication
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def clock():
    """Deterministic timer source."""
    return ManualTimerSource()


@pytest.fixture
def four_items():
    return [Item(id=f"p{i}", title=f"Product {i}") for i in range(4)]


@pytest.fixture
def emitter():
    return SequencerEventEmitter()


@pytest.fixture
def controller(clock, emitter):
    """Controller driven by the manual clock with default timing."""
    ctrl = SequencerController(event_emitter=emitter, timer_source=clock)
    yield ctrl
    ctrl.dispose()


@pytest.fixture
def started(controller, four_items):
    """Controller that already received four items."""
    controller.on_supply_changed(ItemSupply.ready(four_items))
    return controller
