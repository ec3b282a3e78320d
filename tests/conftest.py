import logging

import pytest

from google_sitemap.config import GeneratorConfig


@pytest.fixture()
def make_config(tmp_path):
    """Factory for validated configs writing under a temporary directory."""
    def _make(**options):
        values = {
            "hostname": "example.com",
            "filename_prefix": "sitemap",
            "output_directory": str(tmp_path / "sitemaps"),
        }
        values.update(options)
        return GeneratorConfig(**values).validate()
    return _make


@pytest.fixture()
def memory_config(make_config):
    return make_config(output_mode="memory")


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    # CLI tests attach handlers bound to captured streams
    logging.getLogger("sitemap").handlers.clear()
