import os
import sys
import pytest


def _ensure_project_root_on_sys_path() -> None:
    here = os.path.dirname(__file__)
    project_root = os.path.abspath(os.path.join(here, "..", ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_sys_path()


@pytest.fixture(autouse=True)
def _clear_tunebridge_env():
    """Ensure TUNEBRIDGE_* settings do not leak across tests.
    A developer shell may export provider base URLs; clear them before each
    test and restore afterwards. The cached global settings are reset too.
    """
    from tunebridge.crosscutting import config

    backup = {k: v for k, v in os.environ.items() if k.startswith('TUNEBRIDGE_')}
    for k in backup:
        os.environ.pop(k, None)
    config.settings = None
    try:
        yield
    finally:
        for k in [k for k in os.environ if k.startswith('TUNEBRIDGE_')]:
            os.environ.pop(k, None)
        os.environ.update(backup)
        config.settings = None
