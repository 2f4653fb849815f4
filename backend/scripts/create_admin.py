#!/usr/bin/env python
"""Idempotently ensure the default administrator account exists.

Usage:
    python backend/scripts/create_admin.py                 # admin / admin
    python backend/scripts/create_admin.py --username boss --password s3cret
    python backend/scripts/create_admin.py --dry-run       # report only, rollback

An existing admin whose stored hash is in no recognised format gets its
password reset to the given one (and password_changed cleared).
"""
from __future__ import annotations
import os, sys, argparse
from sqlalchemy import select

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from logiflow import create_app, get_db  # type: ignore
from logiflow.constants.permissions import Role
from logiflow.models.authz import Base, User
from logiflow.security.passwords import detect_format


def ensure_admin(session, username: str, password: str, email: str):
    """Return (user, action) where action is 'created', 'repaired' or 'unchanged'."""
    user = session.execute(select(User).where(User.username==username)).scalar_one_or_none()
    if not user:
        user = User(
            username=username,
            email=email,
            name='Administrateur Système',
            role=Role.ADMIN.value,
            password_changed=False,
            password_hash='',
        )
        user.set_password(password)
        session.add(user)
        return user, 'created'
    if detect_format(user.password_hash) is None:
        user.set_password(password)
        user.password_changed = False
        return user, 'repaired'
    return user, 'unchanged'


def main():
    parser = argparse.ArgumentParser(description='Ensure default admin user')
    parser.add_argument('--username', default='admin')
    parser.add_argument('--password', default='admin')
    parser.add_argument('--email', default='admin@logiflow.com')
    parser.add_argument('--create-tables', action='store_true', help='create missing tables first (dev only)')
    parser.add_argument('--dry-run', action='store_true')
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            if args.create_tables:
                Base.metadata.create_all(session.get_bind())
            user, action = ensure_admin(session, args.username, args.password, args.email)
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] admin '{args.username}' would be {action}")
            else:
                session.commit()
                print(f"[DONE] admin '{args.username}' {action}")
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
