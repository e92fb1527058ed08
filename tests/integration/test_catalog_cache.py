"""
Integration tests for cached product snapshots.
"""

from decimal import Decimal

from order_desk.models import Product
from order_desk.services.catalog_service import ProductSnapshot, get_product_snapshot, invalidate_product


class TestProductSnapshotCache:
    """Snapshots are served from Redis until invalidated."""

    def test_snapshot_is_rebuilt_from_cache(self, session, redis_cache, tile):
        product_id = tile.id
        first = get_product_snapshot(session, product_id)
        assert redis_cache.get('products', str(product_id)) is not None

        session.query(Product).filter_by(id=product_id).update({'weight': Decimal('9')})
        session.commit()

        cached = get_product_snapshot(session, product_id)
        assert isinstance(cached, ProductSnapshot)
        assert cached == first
        assert cached.weight_per_piece == Decimal('2.5')
        assert isinstance(cached.weight_per_piece, Decimal)
        assert cached.pieces_per_unit == 12

    def test_invalidation(self, session, redis_cache, tile):
        product_id = tile.id
        get_product_snapshot(session, product_id)

        session.query(Product).filter_by(id=product_id).update({'pieces_per_unit': 6})
        session.commit()
        invalidate_product(product_id)

        assert redis_cache.get('products', str(product_id)) is None
        assert get_product_snapshot(session, product_id).pieces_per_unit == 6

    def test_set_packing_drops_cached_snapshot(self, app, session, redis_cache, tile):
        product_id = tile.id
        get_product_snapshot(session, product_id)

        result = app.test_cli_runner().invoke(args=['set-packing', 'TILE-600', '--pieces-per-unit', '8'])
        assert 'Packing updated for TILE-600' in result.output

        assert redis_cache.get('products', str(product_id)) is None
        assert get_product_snapshot(session, product_id).pieces_per_unit == 8
