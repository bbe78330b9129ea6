import logging
import os

import pytest

from delve import create_app
from delve.server import _configure_logging


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    saved = list(root.handlers)
    level = root.level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in saved:
        root.addHandler(h)
    root.setLevel(level)


def test_configure_logging_is_idempotent(tmp_path, restore_root_logging):
    app = create_app({"TESTING": True})
    app.instance_path = str(tmp_path)
    path = _configure_logging(app)
    _configure_logging(app)
    assert path == os.path.join(str(tmp_path), "app.log")
    assert len(restore_root_logging.handlers) == 2
    logging.getLogger("delve.test").info("hello file")
    for h in restore_root_logging.handlers:
        h.flush()
    with open(path, encoding="utf-8") as f:
        assert "hello file" in f.read()


def test_unhandled_errors_return_json_id():
    app = create_app()

    @app.route("/boom")
    def boom():
        raise RuntimeError("kaboom")

    r = app.test_client().get("/boom")
    assert r.status_code == 500
    data = r.get_json()
    assert data["error"] == "internal error"
    assert len(data["error_id"]) == 8
