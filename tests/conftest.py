"""
Brief: Shared pytest configuration for mdnsconf tests.

Inputs:
  - None

Outputs:
  - None
"""

import logging
import os
import signal
import sys

import pytest

# Ensure 'src' is on sys.path so 'mdnsconf' package is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)


def _alarm_handler(signum, frame):
    """
    Brief: Signal handler that raises TimeoutError when alarm triggers.

    Inputs:
      - signum: signal number (int)
      - frame: current frame (ignored)

    Outputs:
      - None: Raises TimeoutError to fail the test
    """
    raise TimeoutError("Test exceeded 10 seconds")


if hasattr(signal, "SIGALRM"):
    signal.signal(signal.SIGALRM, _alarm_handler)


@pytest.fixture(autouse=True)
def enforce_test_timeout():
    """
    Brief: Enforce a hard 10-second timeout for each test.

    Inputs:
      - None

    Outputs:
      - None: Cancels alarm after test
    """
    if hasattr(signal, "SIGALRM"):
        signal.alarm(10)
        try:
            yield
        finally:
            signal.alarm(0)
    else:
        yield


@pytest.fixture(autouse=True)
def restore_root_logging():
    """
    Brief: Restore root logger handlers and level after tests that call init_logging.

    Inputs:
      - None

    Outputs:
      - None
    """
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            try:
                h.close()
            except Exception:  # pragma: no cover
                pass
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)


@pytest.fixture
def identity():
    """
    Brief: Deterministic local identity (myhost / 192.0.2.10).

    Inputs:
      - None

    Outputs:
      - LocalIdentity
    """
    from mdnsconf.identity import LocalIdentity

    return LocalIdentity.create("myhost", "192.0.2.10")


@pytest.fixture
def service_file(tmp_path):
    """
    Brief: Factory writing a service file under tmp_path.

    Inputs:
      - tmp_path: pytest fixture

    Outputs:
      - callable(text, name="test.service") -> str path
    """

    def _write(text, name="test.service"):
        path = tmp_path / name
        path.write_text(text)
        return str(path)

    return _write
