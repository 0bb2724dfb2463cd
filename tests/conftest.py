from __future__ import annotations

import os
import random

import numpy as np
import pytest

from tiny_workflow.utils.config import override

DEFAULT_SEED = int(os.getenv("TINY_WORKFLOW_SEED", "1234"))


def pytest_configure(config) -> None:  # pylint: disable=unused-argument
    random.seed(DEFAULT_SEED)
    np.random.seed(DEFAULT_SEED)

    try:
        import torch

        torch.manual_seed(DEFAULT_SEED)
    except ModuleNotFoundError:
        pass


@pytest.fixture(autouse=True)
def _default_config():
    # environment overrides must not leak into assertions about defaults
    with override(debug=False, optimize_bulk=True, release_intermediates=True, default_partitions=1):
        yield
