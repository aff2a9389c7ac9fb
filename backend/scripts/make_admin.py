#!/usr/bin/env python3
"""Promote an existing user to administrator (or demote with --revoke)."""

from __future__ import annotations

import argparse
import logging
import sys

from sqlmodel import Session, select

from booking_calendar.core.log_config import configure_logging
from booking_calendar.db import engine, init_db
from booking_calendar.models import User
from booking_calendar.models.user import ROLE_ADMIN, ROLE_USER

logger = logging.getLogger("make_admin")


def set_role(email: str, role: str) -> bool:
    with Session(engine) as session:
        user = session.exec(select(User).where(User.email == email.lower())).first()
        if not user:
            logger.error(f"No user found with email {email}")
            return False

        user.role = role
        session.add(user)
        session.commit()
        logger.info(f"User {user.email} now has role {role}")
        return True


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email", help="Email of the user to update")
    parser.add_argument("--revoke", action="store_true", help="Set role back to user")
    args = parser.parse_args()

    configure_logging()
    init_db()
    return 0 if set_role(args.email, ROLE_USER if args.revoke else ROLE_ADMIN) else 1


if __name__ == "__main__":
    sys.exit(main())
