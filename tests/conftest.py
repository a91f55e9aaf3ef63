import sys
from pathlib import Path

import pytest

# Ensure the project root is on sys.path so `import vaultrisk` works in tests.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from vaultrisk.access import StaticAccessController  # noqa: E402
from vaultrisk.risk_model import RiskModel  # noqa: E402

ADMIN = "0xadmin"
MANAGER = "0xmanager"


@pytest.fixture
def access() -> StaticAccessController:
    return StaticAccessController.of(admins=[ADMIN], managers=[MANAGER])


@pytest.fixture
def model(access: StaticAccessController) -> RiskModel:
    return RiskModel(access)
