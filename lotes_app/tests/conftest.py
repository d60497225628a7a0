import os
import sys

import pytest

# ensure repo root is on sys.path when running from tests/ folder
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

# Sin profiling ni esperas simuladas durante las pruebas
os.environ.setdefault('LOTES_ENABLE_PROFILING', '0')
os.environ['LOTES_LOGIN_DELAY'] = '0'
os.environ['LOTES_GATEWAY_DELAY'] = '0'

from lotes_app.app_container import AppContainer, get_container


@pytest.fixture
def container():
    AppContainer.reset_instance()
    c = get_container()
    yield c
    AppContainer.reset_instance()


@pytest.fixture
def users(container):
    """Usuarios semilla por alias."""
    repo = container.user_repo
    return {
        'master': repo.get_user('usr-001'),
        'admin': repo.get_user('usr-002'),
        'ventas': repo.get_user('usr-003'),
        'maria': repo.get_user('usr-004'),
        'juan': repo.get_user('usr-005'),
        'laura': repo.get_user('usr-006'),
        'pedro': repo.get_user('usr-007'),
        'sofia': repo.get_user('usr-008'),
    }
