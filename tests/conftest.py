import pathlib

import pytest

from hypothesis import settings

settings.register_profile("default", print_blob=True)
settings.load_profile("default")


@pytest.fixture(scope="session")
def test_data_dir() -> pathlib.Path:
    return pathlib.Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def gold_path(test_data_dir: pathlib.Path) -> pathlib.Path:
    return test_data_dir / "gold.conllu"


@pytest.fixture(scope="session")
def pred_path(test_data_dir: pathlib.Path) -> pathlib.Path:
    return test_data_dir / "pred.conllu"


@pytest.fixture(scope="session")
def mismatched_pred_path(test_data_dir: pathlib.Path) -> pathlib.Path:
    return test_data_dir / "pred_mismatch.conllu"
