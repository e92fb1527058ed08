import fakeredis
import pytest
from decimal import Decimal

from order_desk import create_app
from order_desk import database
from order_desk.database import Base, get_session
from order_desk.models import Customer, Product
from order_desk.services.cache_service import CacheService


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite, no Redis)."""
    app = create_app('config.TestConfig')
    with app.app_context():
        yield app


@pytest.fixture(autouse=True)
def _fresh_schema(app):
    """Every test starts from empty tables."""
    import order_desk.models  # noqa: F401
    Base.metadata.drop_all(bind=database.engine)
    Base.metadata.create_all(bind=database.engine)
    yield


@pytest.fixture(scope='function')
def redis_cache(app):
    """Swap in a cache backed by an in-process Redis."""
    cache = CacheService()
    cache.prefix = 'test'
    cache.client = fakeredis.FakeRedis(decode_responses=True)
    previous = app.extensions['cache']
    app.extensions['cache'] = cache
    yield cache
    app.extensions['cache'] = previous


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session():
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def customer(session):
    """Active customer."""
    customer = Customer(name='Acme Builders', phone='555-0100', address='1 Main St', active=True)
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def inactive_customer(session):
    """Customer that can no longer order."""
    customer = Customer(name='Closed Account', active=False)
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def tile(session):
    """Tile sold in boxes of 12 pieces, 2.5 kg per piece."""
    product = Product(
        code='TILE-600',
        name='Porcelain tile',
        specification='600x600',
        unit='box',
        pieces_per_unit=12,
        weight=Decimal('2.5'),
        active=True
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def loose_product(session):
    """Product without a pack ratio or weight."""
    product = Product(
        code='GROUT-1',
        name='Grout bag',
        unit='bag',
        pieces_per_unit=None,
        weight=None,
        active=True
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def inactive_product(session):
    """Discontinued product."""
    product = Product(
        code='OLD-1',
        name='Discontinued tile',
        unit='box',
        pieces_per_unit=10,
        active=False
    )
    session.add(product)
    session.commit()
    return product
