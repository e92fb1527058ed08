"""Product catalog lookups used while composing order lines."""

import logging
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Dict, Iterable, Optional

from flask import current_app, has_app_context
from sqlalchemy.orm import Session

from order_desk.exceptions import BusinessLogicError, NotFoundError
from order_desk.models import Product
from order_desk.services.cache_service import get_cache

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = 'products'


@dataclass(frozen=True)
class ProductSnapshot:
    """Read-only view of the product fields the conversion engine needs."""
    product_id: int
    name: str
    pieces_per_unit: Optional[int]
    weight_per_piece: Optional[Decimal]
    specification: Optional[str]
    unit: str
    active: bool


def _snapshot_from_product(product: Product) -> ProductSnapshot:
    return ProductSnapshot(
        product_id=product.id,
        name=product.name,
        pieces_per_unit=product.pieces_per_unit,
        weight_per_piece=product.weight,
        specification=product.specification,
        unit=product.unit or 'unit',
        active=bool(product.active)
    )


def _load_snapshot(session: Session, product_id: int) -> Optional[dict]:
    product = session.query(Product).filter(Product.id == product_id).first()
    if not product:
        return None
    return asdict(_snapshot_from_product(product))


def get_product_snapshot(session: Session, product_id: int, require_active: bool = True) -> ProductSnapshot:
    """
    Look up a product for the conversion engine.

    Snapshots are cached (cache-aside) when Redis is available.

    Raises:
        NotFoundError: unknown product.
        BusinessLogicError: inactive product and require_active is set.
    """
    def loader():
        return _load_snapshot(session, product_id)

    data = None
    if has_app_context():
        try:
            cache = get_cache()
        except RuntimeError:
            cache = None
        if cache is not None:
            ttl = current_app.config.get('CACHE_PRODUCTS_TTL', 300)
            data = cache.memoize(CACHE_NAMESPACE, str(product_id), loader, ttl=ttl)
    if data is None:
        data = loader()

    if data is None:
        raise NotFoundError('Product not found.')

    snapshot = ProductSnapshot(**data)
    if require_active and not snapshot.active:
        raise BusinessLogicError(f'Product "{snapshot.name}" is not active.')
    return snapshot


def invalidate_product(product_id: int) -> None:
    """Drop a cached snapshot after the product changed."""
    if not has_app_context():
        return
    try:
        get_cache().delete(CACHE_NAMESPACE, str(product_id))
    except RuntimeError:
        logger.debug("[CACHE] Cache not initialized; nothing to invalidate")


def get_weights_per_piece(session: Session, product_ids: Iterable[int]) -> Dict[int, Optional[Decimal]]:
    """Map product id -> kg per piece (None when the product has no weight)."""
    ids = set(product_ids)
    if not ids:
        return {}
    rows = session.query(Product.id, Product.weight).filter(Product.id.in_(ids)).all()
    return {row.id: row.weight for row in rows}
