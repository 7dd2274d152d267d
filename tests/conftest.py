"""Root pytest configuration for oci-image-unpack tests."""
import pytest

from oci_image_unpack.settings import Settings

from .fakes.fake_materializer import FailingMaterializer, RecordingMaterializer
from .helpers.layout_builder import LayoutBuilder
from .helpers.tar_helpers import file_entry


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Keep the developer's environment out of settings loading."""
    monkeypatch.delenv("OCI_UNPACK_MAX_INDEX_DEPTH", raising=False)
    monkeypatch.delenv("OCI_UNPACK_LOG_LEVEL", raising=False)


# Standardized test fixtures
@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings()


@pytest.fixture
def builder(tmp_path):
    """Empty image layout under ``tmp_path/image``."""
    return LayoutBuilder(tmp_path / "image")


@pytest.fixture
def bundle_dir(tmp_path):
    """Bundle destination that does not exist yet."""
    return tmp_path / "bundle"


@pytest.fixture
def simple_image(builder):
    """Layout with a single manifest holding one layer with ``hello.txt``."""
    manifest = builder.add_image([file_entry("hello.txt", b"hello")])
    builder.write_index([manifest])
    return builder


@pytest.fixture
def recorder():
    """Recording fake materializer."""
    return RecordingMaterializer()


@pytest.fixture
def failing_materializer():
    """Materializer that fails on the first layer after writing to the bundle."""
    return FailingMaterializer(fail_at=0)
