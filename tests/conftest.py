from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture(scope="session")
def app(tmp_path_factory: pytest.TempPathFactory):
    tmp_dir = tmp_path_factory.mktemp("runtime")

    # Must be set before importing modules that read the cached settings.
    os.environ["OPENAI_API_KEY"] = "sk-test"
    os.environ["CALLING_PARTY_LANGUAGE"] = "English"
    os.environ["CALLED_PARTY_LANGUAGE"] = "Spanish"
    os.environ["PUBLIC_BASE_URL"] = "https://bridge.example.com"
    os.environ["DEBUG_AUDIO_DIR"] = str(tmp_dir)
    os.environ.pop("ULTRAVOX_API_KEY", None)

    import importlib

    # Ensure clean import with the test settings.
    for module_name in [
        "config.settings",
        "api.jambonz_routes",
        "api.routes",
        "main",
    ]:
        sys.modules.pop(module_name, None)

    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
