from __future__ import annotations
from collections import Counter
from datetime import datetime, timezone
from flask import Blueprint, request, abort
from flask_jwt_extended import get_jwt_identity
from sqlalchemy import select
from logiflow import get_db
from logiflow.constants.permissions import Action, Module
from logiflow.models.dlc_product import DlcProduct
from logiflow.decorators.auth import require_permission
from logiflow.services.audit import add_audit
from logiflow.services.policy import assert_store_access, filter_query_by_stores
from logiflow.utils.listing import build_list_payload
from logiflow.config.pagination import normalize_pagination
from logiflow.utils.validation import json_body, validate_choice, require_fields, parse_date, parse_int, parse_str

dlc_bp = Blueprint('dlc', __name__)


def _dlc_json(p: DlcProduct):
    return {
        'id': p.id,
        'product_name': p.product_name,
        'gencode': p.gencode,
        'supplier_name': p.supplier_name,
        'store_id': p.store_id,
        'expiry_date': p.expiry_date.isoformat(),
        'date_type': p.date_type,
        'quantity': p.quantity,
        'unit': p.unit,
        'location': p.location,
        'alert_threshold': p.alert_threshold,
        'status': p.computed_status(),
        'stock_epuise': bool(p.stock_epuise),
        'stock_epuise_by': p.stock_epuise_by,
        'stock_epuise_at': p.stock_epuise_at.isoformat() if p.stock_epuise_at else None,
        'notes': p.notes,
        'created_by': p.created_by,
        'validated_by': p.validated_by,
        'validated_at': p.validated_at.isoformat() if p.validated_at else None,
        'processed': p.processed_at is not None,
        'processed_by': p.processed_by,
        'processed_at': p.processed_at.isoformat() if p.processed_at else None,
    }


def _get_product_or_404(product_id: int) -> DlcProduct:
    session = get_db()
    p = session.execute(select(DlcProduct).where(DlcProduct.id==product_id)).scalar_one_or_none()
    if not p:
        abort(404)
    assert_store_access(p.store_id)
    return p


def _scoped_query():
    session = get_db()
    q = filter_query_by_stores(session.query(DlcProduct), DlcProduct.store_id)
    store_id = request.args.get('store_id')
    if store_id:
        q = q.filter(DlcProduct.store_id==parse_int(store_id, 'store_id'))
    return q.order_by(DlcProduct.expiry_date.asc(), DlcProduct.id.asc())


@dlc_bp.get('')
@require_permission(Module.DLC, Action.VIEW)
def list_products():
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))
    rows = [_dlc_json(p) for p in _scoped_query().all()]
    # status depends on today's date, so it is filtered after computing it
    status = request.args.get('status')
    if status:
        validate_choice(status, DlcProduct.ALL_STATUSES)
        rows = [r for r in rows if r['status'] == status]
    return build_list_payload(rows[offset:offset + limit], len(rows), limit, offset)


@dlc_bp.get('/stats')
@require_permission(Module.DLC, Action.VIEW)
def product_stats():
    counts = Counter(p.computed_status() for p in _scoped_query().all())
    out = {s: counts.get(s, 0) for s in DlcProduct.ALL_STATUSES}
    out['total'] = sum(counts.values())
    return out


@dlc_bp.get('/<int:product_id>')
@require_permission(Module.DLC, Action.VIEW)
def get_product(product_id: int):
    return _dlc_json(_get_product_or_404(product_id))


@dlc_bp.post('')
@require_permission(Module.DLC, Action.CREATE)
def create_product():
    data = json_body()
    require_fields(data, 'product_name', 'expiry_date', 'store_id')
    store_id = parse_int(data['store_id'], 'store_id')
    assert_store_access(store_id)
    p = DlcProduct(
        product_name=parse_str(data['product_name'], 'product_name', required=True),
        gencode=parse_str(data.get('gencode'), 'gencode'),
        supplier_name=parse_str(data.get('supplier_name'), 'supplier_name'),
        store_id=store_id,
        expiry_date=parse_date(data['expiry_date'], 'expiry_date'),
        date_type=validate_choice(data.get('date_type') or 'dlc', DlcProduct.DATE_TYPES, 'date_type'),
        quantity=parse_int(data.get('quantity', 1), 'quantity'),
        alert_threshold=parse_int(data.get('alert_threshold', 15), 'alert_threshold'),
        notes=parse_str(data.get('notes'), 'notes'),
        status=DlcProduct.STATUS_ACTIVE,
        created_by=int(get_jwt_identity()),
    )
    for field in ('unit', 'location'):
        value = parse_str(data.get(field), field)
        if value:
            setattr(p, field, value)
    session = get_db()
    session.add(p); session.flush()
    add_audit('DLC.CREATE', 'DlcProduct', p.id, {'product_name': p.product_name, 'store_id': store_id})
    session.commit()
    return _dlc_json(p), 201


@dlc_bp.put('/<int:product_id>')
@require_permission(Module.DLC, Action.EDIT)
def update_product(product_id: int):
    p = _get_product_or_404(product_id)
    data = json_body()
    for field in ('gencode', 'supplier_name', 'notes'):
        if field in data:
            setattr(p, field, parse_str(data[field], field))
    for field in ('unit', 'location', 'product_name'):
        if field in data:
            setattr(p, field, parse_str(data[field], field, required=True))
    if 'expiry_date' in data:
        expiry = parse_date(data['expiry_date'], 'expiry_date')
        if expiry is None:
            abort(400, description='expiry_date cannot be empty')
        p.expiry_date = expiry
    if 'date_type' in data:
        p.date_type = validate_choice(data['date_type'], DlcProduct.DATE_TYPES, 'date_type')
    if 'quantity' in data:
        p.quantity = parse_int(data['quantity'], 'quantity')
    if 'alert_threshold' in data:
        p.alert_threshold = parse_int(data['alert_threshold'], 'alert_threshold')
    add_audit('DLC.UPDATE', 'DlcProduct', p.id, {'fields': sorted(data.keys())})
    get_db().commit()
    return _dlc_json(p)


@dlc_bp.delete('/<int:product_id>')
@require_permission(Module.DLC, Action.DELETE)
def delete_product(product_id: int):
    p = _get_product_or_404(product_id)
    session = get_db()
    session.delete(p)
    add_audit('DLC.DELETE', 'DlcProduct', product_id, {'product_name': p.product_name})
    session.commit()
    return {'status': 'deleted'}


# Validation changes the product's state, so it is gated on 'edit'.
@dlc_bp.post('/<int:product_id>/validate')
@require_permission(Module.DLC, Action.EDIT)
def validate_product(product_id: int):
    p = _get_product_or_404(product_id)
    if p.status == DlcProduct.STATUS_VALIDATED:
        abort(400, description='product already validated')
    p.status = DlcProduct.STATUS_VALIDATED
    p.validated_by = int(get_jwt_identity())
    p.validated_at = datetime.now(timezone.utc)
    add_audit('DLC.VALIDATE', 'DlcProduct', p.id)
    get_db().commit()
    return _dlc_json(p)


@dlc_bp.put('/<int:product_id>/stock-epuise')
@require_permission(Module.DLC, Action.EDIT)
def mark_stock_epuise(product_id: int):
    p = _get_product_or_404(product_id)
    p.stock_epuise = True
    p.stock_epuise_by = int(get_jwt_identity())
    p.stock_epuise_at = datetime.now(timezone.utc)
    add_audit('DLC.STOCK_EPUISE', 'DlcProduct', p.id)
    get_db().commit()
    return _dlc_json(p)


@dlc_bp.put('/<int:product_id>/restore-stock')
@require_permission(Module.DLC, Action.EDIT)
def restore_stock(product_id: int):
    p = _get_product_or_404(product_id)
    p.stock_epuise = False
    p.stock_epuise_by = None
    p.stock_epuise_at = None
    add_audit('DLC.STOCK_RESTORE', 'DlcProduct', p.id)
    get_db().commit()
    return _dlc_json(p)


# Any role that can record DLC products may flag one as handled for now;
# clearing the flag is a correction and needs 'edit'.
@dlc_bp.put('/<int:product_id>/mark-processed')
@require_permission(Module.DLC, Action.CREATE)
def mark_processed(product_id: int):
    p = _get_product_or_404(product_id)
    if p.processed_at is not None:
        abort(400, description='product already processed')
    p.processed_by = int(get_jwt_identity())
    p.processed_at = datetime.now(timezone.utc)
    add_audit('DLC.PROCESSED', 'DlcProduct', p.id)
    get_db().commit()
    return _dlc_json(p)


@dlc_bp.put('/<int:product_id>/unmark-processed')
@require_permission(Module.DLC, Action.EDIT)
def unmark_processed(product_id: int):
    p = _get_product_or_404(product_id)
    if p.processed_at is None:
        abort(400, description='product is not processed')
    p.processed_by = None
    p.processed_at = None
    add_audit('DLC.UNPROCESSED', 'DlcProduct', p.id)
    get_db().commit()
    return _dlc_json(p)
