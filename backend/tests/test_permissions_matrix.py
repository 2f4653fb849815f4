import itertools
import pytest
from logiflow.constants import permissions as perms
from logiflow.constants.permissions import (
    Action, Module, Role, PERMISSIONS,
    get_permissions, can_access_module, has_permission, can_perform_action,
    can_view, can_create, can_edit, can_delete, can_validate,
    parse_role, permission_snapshot, matrix_snapshot,
)

CRUD = ['view', 'create', 'edit', 'delete']

EXPECTED = {
    'dashboard': {'admin': ['view'], 'directeur': ['view'], 'manager': ['view'], 'employee': ['view']},
    'calendar': {'admin': CRUD, 'directeur': CRUD, 'manager': ['view', 'create', 'edit'], 'employee': ['view']},
    'orders': {'admin': CRUD, 'directeur': CRUD, 'manager': ['view', 'create', 'edit'], 'employee': ['view']},
    'deliveries': {'admin': CRUD, 'directeur': CRUD, 'manager': ['view', 'create', 'edit'], 'employee': ['view']},
    'reconciliation': {'admin': CRUD, 'directeur': ['view', 'create', 'edit'], 'manager': [], 'employee': []},
    'publicity': {'admin': CRUD, 'directeur': ['view'], 'manager': ['view'], 'employee': ['view']},
    'customer-orders': {'admin': CRUD, 'directeur': CRUD, 'manager': ['view', 'create', 'edit'], 'employee': ['view', 'create']},
    'dlc': {'admin': CRUD, 'directeur': CRUD, 'manager': ['view', 'create', 'edit'], 'employee': ['view', 'create']},
    'tasks': {'admin': CRUD + ['validate'], 'directeur': CRUD + ['validate'], 'manager': ['view', 'validate'], 'employee': ['view']},
    'admin': {'admin': CRUD + ['manage'], 'directeur': [], 'manager': [], 'employee': []},
    'backups': {'admin': CRUD + ['manage'], 'directeur': [], 'manager': [], 'employee': []},
}

ALL_CELLS = [(m, r) for m in EXPECTED for r in EXPECTED[m]]


@pytest.mark.parametrize('module,role', ALL_CELLS)
def test_table_cell_matches_literal(module, role):
    assert {a.value for a in get_permissions(module, role)} == set(EXPECTED[module][role])


def test_table_covers_every_module_and_role():
    assert set(EXPECTED) == {m.value for m in Module}
    for module in Module:
        assert set(PERMISSIONS[module]) == set(Role)


def test_manage_only_on_admin_and_backups():
    for module in Module:
        for role in Role:
            if Action.MANAGE in PERMISSIONS[module][role]:
                assert module in (Module.ADMIN, Module.BACKUPS)


@pytest.mark.parametrize('module,role,action,expected', [
    ('reconciliation', 'manager', 'view', False),
    ('tasks', 'manager', 'validate', True),
    ('tasks', 'manager', 'create', False),
    ('backups', 'admin', 'manage', True),
    ('tasks', 'employee', 'validate', False),
    ('publicity', 'directeur', 'edit', False),
    ('dlc', 'employee', 'create', True),
])
def test_documented_scenarios(module, role, action, expected):
    assert has_permission(module, role, action) is expected


def test_customer_orders_employee_is_view_and_create_exactly():
    assert get_permissions('customer-orders', 'employee') == {Action.VIEW, Action.CREATE}


def test_admin_module_hidden_from_directeur():
    assert can_access_module('admin', 'directeur') is False
    assert can_access_module('reconciliation', 'manager') is False
    assert can_access_module('reconciliation', 'directeur') is True


@pytest.mark.parametrize('module', ['', 'dash board', 'unknown', 'customer_orders', None, 42])
def test_unknown_module_fails_closed(module):
    for role in Role:
        assert get_permissions(module, role) == frozenset()
        assert can_access_module(module, role) is False
        assert has_permission(module, role, 'view') is False


@pytest.mark.parametrize('role', ['', 'root', 'superadmin', 'employe', None, 3, ['admin']])
def test_unknown_role_fails_closed(role):
    for module in Module:
        assert get_permissions(module, role) == frozenset()
        assert can_access_module(module, role) is False


@pytest.mark.parametrize('action', ['approve', 'VIEWS', '', None, 'manage'])
def test_unknown_or_misplaced_action_is_false(action):
    assert has_permission('tasks', 'admin', action) is False


def test_role_lookup_is_case_insensitive():
    assert has_permission('tasks', 'ADMIN', 'delete') == has_permission('tasks', 'admin', 'delete')
    assert get_permissions('dlc', ' Manager ') == get_permissions('dlc', 'manager')
    assert get_permissions('orders', Role.DIRECTEUR) == get_permissions('orders', 'DiReCtEuR')


def test_has_permission_agrees_with_get_permissions():
    for module, role, action in itertools.product(Module, Role, Action):
        assert has_permission(module, role, action) == (action in get_permissions(module, role))
        assert can_perform_action(module, role, action) == has_permission(module, role, action)


def test_convenience_predicates_agree_with_has_permission():
    predicates = {
        'view': can_view, 'create': can_create, 'edit': can_edit,
        'delete': can_delete, 'validate': can_validate,
    }
    for module, role in itertools.product(EXPECTED, [r.value for r in Role] + ['ghost']):
        for action, predicate in predicates.items():
            assert predicate(module, role) == has_permission(module, role, action)


def test_can_access_module_matches_non_empty_set():
    for module, role in itertools.product(Module, Role):
        assert can_access_module(module, role) == (len(get_permissions(module, role)) > 0)


def test_repeated_lookups_are_equal_and_table_is_read_only():
    first = get_permissions('tasks', 'manager')
    second = get_permissions('tasks', 'manager')
    assert first == second
    before = matrix_snapshot()
    with pytest.raises(AttributeError):
        first.add(Action.CREATE)  # frozenset
    with pytest.raises(TypeError):
        PERMISSIONS[Module.TASKS] = {}
    with pytest.raises(TypeError):
        PERMISSIONS[Module.TASKS][Role.MANAGER] = frozenset(Action)
    assert matrix_snapshot() == before


def test_no_mutation_api_exposed():
    public = [n for n in dir(perms) if not n.startswith('_')]
    assert not [n for n in public if n.startswith(('set_', 'update_', 'grant', 'revoke', 'add_', 'remove_'))]


def test_parse_role():
    assert parse_role('Admin') is Role.ADMIN
    assert parse_role('  employee\n') is Role.EMPLOYEE
    assert parse_role(Role.MANAGER) is Role.MANAGER
    assert parse_role('owner') is None
    assert parse_role(None) is None


def test_permission_snapshot_lists_every_module():
    snap = permission_snapshot('manager')
    assert set(snap) == set(EXPECTED)
    assert snap['tasks'] == ['view', 'validate']
    assert snap['reconciliation'] == []
    assert all(v == [] for v in permission_snapshot('nobody').values())


def test_matrix_snapshot_round_trips_literal():
    snap = matrix_snapshot()
    for module, roles in EXPECTED.items():
        for role, actions in roles.items():
            assert sorted(snap[module][role]) == sorted(actions)
