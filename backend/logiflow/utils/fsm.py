"""Allowed status transitions for lifecycle models such as Task.

Usage:
    TASK_FSM = TransitionValidator({'pending': {'completed'}, 'completed': set()})
    TASK_FSM.assert_can_transition(task.status, 'completed')

Aborts with 400 when the transition is not allowed.
"""
from __future__ import annotations
from typing import Dict, Set
from flask import abort


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            abort(400, description=f"Invalid {self.field_name} transition {current} -> {target}")
        return True


__all__ = ['TransitionValidator']
