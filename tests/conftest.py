#!/usr/bin/env python3

"""
Pytest configuration and shared fixtures for arch-mirrorlist test suite.
"""

import os
import sys
import tempfile
import pytest
from unittest.mock import Mock, MagicMock
from pathlib import Path

# Add the project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import requests

from archmirrors.config.manager import FetchConfig, Protocol, IPVersion, ToolConfig


SAMPLE_MIRRORLIST = (
    "##\n"
    "## Arch Linux repository mirrorlist\n"
    "## Filtered by mirror score from mirror status page\n"
    "## Generated on 2026-10-18\n"
    "##\n"
    "\n"
    "## Germany\n"
    "#Server = https://mirror.example.de/archlinux/$repo/os/$arch\n"
    "#Server = https://ftp.example.de/pub/archlinux/$repo/os/$arch\n"
)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that gets cleaned up after test"""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir

    # Cleanup
    import shutil
    if os.path.exists(temp_dir):
        shutil.rmtree(temp_dir)


@pytest.fixture
def sample_fetch_config():
    """Provide the default selection: HTTPS over IPv4 in Germany"""
    return FetchConfig(
        protocols=(Protocol.HTTPS,),
        ip_versions=(IPVersion.IPV4,),
        country="de"
    )


@pytest.fixture
def sample_tool_config(temp_dir):
    """Provide a tool configuration writing into the temp directory"""
    return ToolConfig(
        country="de",
        output=os.path.join(temp_dir, "mirrorlist")
    )


@pytest.fixture
def sample_mirrorlist():
    """Provide a mirror list body as served by archlinux.org"""
    return SAMPLE_MIRRORLIST


def make_response(body: bytes = b"", content_type="text/plain", chunk_size: int = 16, error: Exception = None):
    """Build a mock streamed response.

    The body is served in chunks of ``chunk_size`` bytes. When ``error`` is
    given it is raised after the whole body has been handed out.
    """
    response = MagicMock(spec=requests.Response)
    response.headers = {} if content_type is None else {"Content-Type": content_type}

    def iter_content(*args, **kwargs):
        for start in range(0, len(body), chunk_size):
            yield body[start:start + chunk_size]
        if error is not None:
            raise error

    response.iter_content.side_effect = iter_content
    return response


@pytest.fixture
def response_factory():
    """Provide the mock response builder"""
    return make_response


@pytest.fixture
def mock_session(sample_mirrorlist):
    """Provide a mock requests session serving the sample mirror list"""
    session = Mock(spec=requests.Session)
    session.get.return_value = make_response(sample_mirrorlist.encode("utf-8"))
    return session


@pytest.fixture
def environment_variables():
    """Provide controlled environment variables for tests"""
    original_environ = os.environ.copy()

    # Set test-specific environment variables
    test_environ = {
        'XDG_CONFIG_HOME': '/tmp/.config',
        'HOME': '/tmp',
        'USER': 'testuser'
    }

    os.environ.update(test_environ)

    yield test_environ

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_environ)


@pytest.fixture(autouse=True)
def setup_logging():
    """Set up logging for tests"""
    import logging

    # Set up basic logging for tests
    logging.basicConfig(
        level=logging.WARNING,  # Only show warnings and errors in tests
        format="%(name)s - %(levelname)s - %(message)s"
    )

    # Silence some noisy loggers during tests
    logging.getLogger("urllib3").setLevel(logging.ERROR)


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test names"""
    for item in items:
        # Add integration marker to integration test classes
        if "Integration" in item.cls.__name__ if item.cls else False:
            item.add_marker(pytest.mark.integration)
