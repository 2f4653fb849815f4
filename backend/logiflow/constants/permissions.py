"""Hardcoded role/module permission matrix shared by the API and the UI.

Every module lists all four roles explicitly, even when two roles hold the same
rights; there is no inheritance between roles. Changing a permission means
editing PERMISSIONS below and redeploying.

Lookups accept enum members or raw strings. Anything that does not coerce to a
known Module, Role or Action resolves to "no permission".
"""
from __future__ import annotations
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Union


class Role(str, Enum):
    ADMIN = 'admin'
    DIRECTEUR = 'directeur'
    MANAGER = 'manager'
    EMPLOYEE = 'employee'


class Action(str, Enum):
    VIEW = 'view'
    CREATE = 'create'
    EDIT = 'edit'
    DELETE = 'delete'
    VALIDATE = 'validate'
    MANAGE = 'manage'  # admin & backups modules only


class Module(str, Enum):
    DASHBOARD = 'dashboard'
    CALENDAR = 'calendar'
    ORDERS = 'orders'
    DELIVERIES = 'deliveries'
    RECONCILIATION = 'reconciliation'
    PUBLICITY = 'publicity'
    CUSTOMER_ORDERS = 'customer-orders'
    DLC = 'dlc'
    TASKS = 'tasks'
    ADMIN = 'admin'
    BACKUPS = 'backups'


RoleLike = Union[Role, str, None]
ModuleLike = Union[Module, str, None]
ActionLike = Union[Action, str, None]

NO_PERMISSIONS: FrozenSet[Action] = frozenset()

_V, _C, _E, _D = Action.VIEW, Action.CREATE, Action.EDIT, Action.DELETE
_VAL, _M = Action.VALIDATE, Action.MANAGE

# module -> role -> allowed actions
_PERMISSION_SOURCE: Dict[Module, Dict[Role, List[Action]]] = {
    # all roles see the dashboard
    Module.DASHBOARD: {
        Role.ADMIN: [_V],
        Role.DIRECTEUR: [_V],
        Role.MANAGER: [_V],
        Role.EMPLOYEE: [_V],
    },
    Module.CALENDAR: {
        Role.ADMIN: [_V, _C, _E, _D],
        Role.DIRECTEUR: [_V, _C, _E, _D],
        Role.MANAGER: [_V, _C, _E],
        Role.EMPLOYEE: [_V],
    },
    Module.ORDERS: {
        Role.ADMIN: [_V, _C, _E, _D],
        Role.DIRECTEUR: [_V, _C, _E, _D],
        Role.MANAGER: [_V, _C, _E],
        Role.EMPLOYEE: [_V],
    },
    Module.DELIVERIES: {
        Role.ADMIN: [_V, _C, _E, _D],
        Role.DIRECTEUR: [_V, _C, _E, _D],
        Role.MANAGER: [_V, _C, _E],
        Role.EMPLOYEE: [_V],
    },
    # supplier reconciliation is hidden from managers and employees
    Module.RECONCILIATION: {
        Role.ADMIN: [_V, _C, _E, _D],
        Role.DIRECTEUR: [_V, _C, _E],
        Role.MANAGER: [],
        Role.EMPLOYEE: [],
    },
    Module.PUBLICITY: {
        Role.ADMIN: [_V, _C, _E, _D],
        Role.DIRECTEUR: [_V],
        Role.MANAGER: [_V],
        Role.EMPLOYEE: [_V],
    },
    Module.CUSTOMER_ORDERS: {
        Role.ADMIN: [_V, _C, _E, _D],
        Role.DIRECTEUR: [_V, _C, _E, _D],
        Role.MANAGER: [_V, _C, _E],
        Role.EMPLOYEE: [_V, _C],
    },
    Module.DLC: {
        Role.ADMIN: [_V, _C, _E, _D],
        Role.DIRECTEUR: [_V, _C, _E, _D],
        Role.MANAGER: [_V, _C, _E],
        Role.EMPLOYEE: [_V, _C],
    },
    Module.TASKS: {
        Role.ADMIN: [_V, _C, _E, _D, _VAL],
        Role.DIRECTEUR: [_V, _C, _E, _D, _VAL],
        Role.MANAGER: [_V, _VAL],
        Role.EMPLOYEE: [_V],
    },
    Module.ADMIN: {
        Role.ADMIN: [_V, _C, _E, _D, _M],
        Role.DIRECTEUR: [],
        Role.MANAGER: [],
        Role.EMPLOYEE: [],
    },
    Module.BACKUPS: {
        Role.ADMIN: [_V, _C, _E, _D, _M],
        Role.DIRECTEUR: [],
        Role.MANAGER: [],
        Role.EMPLOYEE: [],
    },
}

MANAGE_MODULES = frozenset({Module.ADMIN, Module.BACKUPS})


def _freeze(source: Dict[Module, Dict[Role, List[Action]]]) -> Mapping[Module, Mapping[Role, FrozenSet[Action]]]:
    table = {}
    for module in Module:
        row = source.get(module, {})
        cells = {}
        for role in Role:
            actions = row.get(role, [])
            if len(set(actions)) != len(actions):
                raise ValueError(f'duplicate actions for {module.value}/{role.value}')
            if Action.MANAGE in actions and module not in MANAGE_MODULES:
                raise ValueError(f"'manage' is not allowed on module {module.value}")
            cells[role] = frozenset(actions)
        table[module] = MappingProxyType(cells)
    return MappingProxyType(table)


PERMISSIONS = _freeze(_PERMISSION_SOURCE)
del _PERMISSION_SOURCE


def _coerce(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return None


def parse_role(raw: RoleLike) -> Optional[Role]:
    """Case-insensitive role parsing; None for anything unrecognized."""
    return _coerce(Role, raw)


def parse_module(raw: ModuleLike) -> Optional[Module]:
    return _coerce(Module, raw)


def parse_action(raw: ActionLike) -> Optional[Action]:
    return _coerce(Action, raw)


def get_permissions(module: ModuleLike, role: RoleLike) -> FrozenSet[Action]:
    mod = parse_module(module)
    rol = parse_role(role)
    if mod is None or rol is None:
        return NO_PERMISSIONS
    return PERMISSIONS[mod].get(rol, NO_PERMISSIONS)


def can_access_module(module: ModuleLike, role: RoleLike) -> bool:
    return len(get_permissions(module, role)) > 0


def has_permission(module: ModuleLike, role: RoleLike, action: ActionLike) -> bool:
    act = parse_action(action)
    if act is None:
        return False
    return act in get_permissions(module, role)


can_perform_action = has_permission


def _action_predicate(action: Action):
    def predicate(module: ModuleLike, role: RoleLike) -> bool:
        return has_permission(module, role, action)
    predicate.__name__ = f'can_{action.value}'
    predicate.__doc__ = f"has_permission(module, role, '{action.value}')"
    return predicate


can_view = _action_predicate(Action.VIEW)
can_create = _action_predicate(Action.CREATE)
can_edit = _action_predicate(Action.EDIT)
can_delete = _action_predicate(Action.DELETE)
can_validate = _action_predicate(Action.VALIDATE)


def permission_snapshot(role: RoleLike) -> Dict[str, List[str]]:
    """Return the role's row of the table as plain JSON-able data.

    Every module is present; modules the role cannot access map to [].
    Actions keep the declaration order of the Action enum.
    """
    out: Dict[str, List[str]] = {}
    for module in Module:
        granted = get_permissions(module, role)
        out[module.value] = [a.value for a in Action if a in granted]
    return out


def matrix_snapshot() -> Dict[str, Dict[str, List[str]]]:
    """Full table as module -> role -> actions (JSON-able)."""
    return {
        module.value: {
            role.value: [a.value for a in Action if a in PERMISSIONS[module][role]]
            for role in Role
        }
        for module in Module
    }


__all__ = [
    'Role', 'Action', 'Module', 'PERMISSIONS', 'NO_PERMISSIONS', 'MANAGE_MODULES',
    'parse_role', 'parse_module', 'parse_action',
    'get_permissions', 'can_access_module', 'has_permission', 'can_perform_action',
    'can_view', 'can_create', 'can_edit', 'can_delete', 'can_validate',
    'permission_snapshot', 'matrix_snapshot',
]
