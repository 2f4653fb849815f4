import os, sys, pytest
# Ensure backend directory is on path so 'logiflow' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from logiflow import create_app, get_db
from logiflow.models.authz import Base
# Import all model modules to ensure tables are registered before create_all
import logiflow.models.audit  # noqa: F401
import logiflow.models.task  # noqa: F401
import logiflow.models.dlc_product  # noqa: F401


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    app = create_app({'DATABASE_URL': 'sqlite+pysqlite:///:memory:', 'JWT_SECRET_KEY': 'test-secret'})
    # Keep an app context for helpers that mint tokens outside requests
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
        yield app


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()
