from __future__ import annotations
from datetime import datetime, timezone
from flask import Blueprint, request, abort
from flask_jwt_extended import get_jwt_identity
from sqlalchemy import select
from logiflow import get_db
from logiflow.constants.permissions import Action, Module
from logiflow.models.task import Task
from logiflow.decorators.auth import require_permission
from logiflow.services.audit import add_audit
from logiflow.services.policy import assert_store_access, filter_query_by_stores
from logiflow.utils.fsm import TransitionValidator
from logiflow.utils.listing import apply_pagination, build_list_payload
from logiflow.utils.validation import (
    json_body, validate_choice, require_fields, parse_date, parse_datetime, parse_int, parse_str,
)

tasks_bp = Blueprint('tasks', __name__)

TASK_FSM = TransitionValidator({
    Task.STATUS_PENDING: {Task.STATUS_COMPLETED},
    Task.STATUS_COMPLETED: set(),
})


def _task_json(t: Task):
    return {
        'id': t.id,
        'title': t.title,
        'description': t.description,
        'start_date': t.start_date.isoformat() if t.start_date else None,
        'due_date': t.due_date.isoformat() if t.due_date else None,
        'priority': t.priority,
        'status': t.status,
        'assigned_to': t.assigned_to,
        'created_by': t.created_by,
        'store_id': t.store_id,
        'completed_at': t.completed_at.isoformat() if t.completed_at else None,
        'completed_by': t.completed_by,
    }


def _get_task_or_404(task_id: int) -> Task:
    session = get_db()
    t = session.execute(select(Task).where(Task.id==task_id)).scalar_one_or_none()
    if not t:
        abort(404)
    assert_store_access(t.store_id)
    return t


@tasks_bp.get('')
@require_permission(Module.TASKS, Action.VIEW)
def list_tasks():
    session = get_db()
    q = filter_query_by_stores(session.query(Task), Task.store_id)
    status = request.args.get('status')
    if status:
        q = q.filter(Task.status==validate_choice(status, Task.ALL_STATUSES))
    store_id = request.args.get('store_id')
    if store_id:
        q = q.filter(Task.store_id==parse_int(store_id, 'store_id'))
    q = q.order_by(Task.due_date.is_(None), Task.due_date.asc(), Task.id.asc())
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [_task_json(t) for t in paged_q.all()]
    return build_list_payload(rows, total, limit, offset)


@tasks_bp.get('/<int:task_id>')
@require_permission(Module.TASKS, Action.VIEW)
def get_task(task_id: int):
    return _task_json(_get_task_or_404(task_id))


@tasks_bp.post('')
@require_permission(Module.TASKS, Action.CREATE)
def create_task():
    data = json_body()
    require_fields(data, 'title', 'assigned_to', 'store_id')
    store_id = parse_int(data['store_id'], 'store_id')
    assert_store_access(store_id)
    t = Task(
        title=parse_str(data['title'], 'title', required=True),
        description=parse_str(data.get('description'), 'description'),
        start_date=parse_datetime(data.get('start_date'), 'start_date'),
        due_date=parse_date(data.get('due_date'), 'due_date'),
        priority=validate_choice(data.get('priority') or 'medium', Task.PRIORITIES, 'priority'),
        status=Task.STATUS_PENDING,
        assigned_to=parse_str(data['assigned_to'], 'assigned_to', required=True),
        created_by=int(get_jwt_identity()),
        store_id=store_id,
    )
    session = get_db()
    session.add(t); session.flush()
    add_audit('TASK.CREATE', 'Task', t.id, {'title': t.title, 'store_id': store_id})
    session.commit()
    return _task_json(t), 201


@tasks_bp.put('/<int:task_id>')
@require_permission(Module.TASKS, Action.EDIT)
def update_task(task_id: int):
    t = _get_task_or_404(task_id)
    data = json_body()
    if 'title' in data:
        t.title = parse_str(data['title'], 'title', required=True)
    if 'description' in data:
        t.description = parse_str(data['description'], 'description')
    if 'assigned_to' in data:
        t.assigned_to = parse_str(data['assigned_to'], 'assigned_to', required=True)
    if 'priority' in data:
        t.priority = validate_choice(data['priority'], Task.PRIORITIES, 'priority')
    if 'start_date' in data:
        t.start_date = parse_datetime(data['start_date'], 'start_date')
    if 'due_date' in data:
        t.due_date = parse_date(data['due_date'], 'due_date')
    if 'store_id' in data:
        store_id = parse_int(data['store_id'], 'store_id')
        assert_store_access(store_id)
        t.store_id = store_id
    add_audit('TASK.UPDATE', 'Task', t.id, {'fields': sorted(data.keys())})
    get_db().commit()
    return _task_json(t)


@tasks_bp.delete('/<int:task_id>')
@require_permission(Module.TASKS, Action.DELETE)
def delete_task(task_id: int):
    t = _get_task_or_404(task_id)
    session = get_db()
    session.delete(t)
    add_audit('TASK.DELETE', 'Task', task_id, {'title': t.title})
    session.commit()
    return {'status': 'deleted'}


@tasks_bp.post('/<int:task_id>/complete')
@require_permission(Module.TASKS, Action.VALIDATE)
def complete_task(task_id: int):
    t = _get_task_or_404(task_id)
    TASK_FSM.assert_can_transition(t.status, Task.STATUS_COMPLETED)
    t.status = Task.STATUS_COMPLETED
    t.completed_at = datetime.now(timezone.utc)
    t.completed_by = int(get_jwt_identity())
    add_audit('TASK.COMPLETE', 'Task', t.id)
    get_db().commit()
    return _task_json(t)
