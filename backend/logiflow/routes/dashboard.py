from __future__ import annotations
from collections import Counter
from flask import Blueprint
from logiflow import get_db
from logiflow.constants.permissions import Module, can_access_module, can_view
from logiflow.decorators.auth import require_module_access
from logiflow.models.task import Task
from logiflow.models.dlc_product import DlcProduct
from logiflow.services.policy import current_role, filter_query_by_stores

dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.get('/summary')
@require_module_access(Module.DASHBOARD)
def summary():
    """Landing-page counters; each block is present only if the role can view that module."""
    role = current_role()
    session = get_db()
    out = {
        'role': role.value,
        'modules': [m.value for m in Module if can_access_module(m, role)],
    }
    if can_view(Module.TASKS, role):
        q = filter_query_by_stores(session.query(Task), Task.store_id)
        out['tasks'] = {'pending': q.filter(Task.status==Task.STATUS_PENDING).count()}
    if can_view(Module.DLC, role):
        q = filter_query_by_stores(session.query(DlcProduct), DlcProduct.store_id)
        counts = Counter(p.computed_status() for p in q.all())
        out['dlc'] = {s: counts.get(s, 0) for s in DlcProduct.ALL_STATUSES}
    return out
