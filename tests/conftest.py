import httpx
import pytest

from sqliprobe.core.prober import Prober
from vuln_lab.app import create_app, init_db


@pytest.fixture
def sleeps():
    """Delays the lab was asked to simulate."""
    return []


@pytest.fixture
def lab_app(tmp_path, sleeps):
    db_path = str(tmp_path / "vulnlab.db")
    init_db(db_path)
    app = create_app(db_path, sleep=sleeps.append)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def lab_transport(lab_app):
    return httpx.WSGITransport(app=lab_app)


@pytest.fixture
def lab_prober(lab_transport):
    prober = Prober(transport=lab_transport)
    yield prober
    prober.close()
