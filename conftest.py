import os
import sys

import pytest

# Ensure repo-local imports (e.g., `import scholarfish`) resolve without extra setup.
src_dir = os.path.abspath(os.path.dirname(__file__))
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "-S",
        "--slow",
        action="store_true",
        default=False,
        dest="run_slow",
        help="Run tests marked with @pytest.mark.slow (self-play smoke checks)",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    if not config.getoption("run_slow"):
        skip_slow = pytest.mark.skip(reason="use -S/--slow to enable self-play smoke tests")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)
