"""
USER MANAGEMENT HELPER
Quick script to inspect accounts and grant or revoke the Admin role.

Usage:
    python manage_users.py --list
    python manage_users.py --promote "someone@example.com"
    python manage_users.py --demote "someone@example.com"
    python manage_users.py --stats
"""

import sys
import os

# Add the app directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.database import SessionLocal, Base, engine
from app.models.user import User, ROLE_ADMIN, ROLE_USER
from app.models.post import Post
from app.models.comment import Comment
from app.models.like import Like


def list_users():
    """List all users"""
    db = SessionLocal()

    try:
        users = db.query(User).order_by(User.id).all()

        if not users:
            print("No users found.")
            return

        print("\nUSERS:\n")
        print(f"{'ID':<6} {'Name':<25} {'Email':<35} {'Role':<8} {'Followers':<10}")
        print("-" * 88)

        for u in users:
            print(f"{u.id:<6} {u.name[:24]:<25} {u.email[:34]:<35} {u.role:<8} {len(u.followers):<10}")

        print()
    finally:
        db.close()


def set_role(email, role):
    """Set the role of the account registered with ``email``"""
    db = SessionLocal()

    try:
        user = db.query(User).filter(User.email == email.strip().lower()).first()

        if not user:
            print(f"User '{email}' not found!")
            return False

        user.role = role
        db.commit()

        print(f"User '{email}' is now {role}")
        return True
    finally:
        db.close()


def show_stats():
    """Print content totals"""
    db = SessionLocal()

    try:
        print("\nSITE STATS\n")
        print(f"Users:     {db.query(User).count()}")
        print(f"Admins:    {db.query(User).filter(User.role == ROLE_ADMIN).count()}")
        print(f"Posts:     {db.query(Post).count()}")
        print(f"Comments:  {db.query(Comment).count()}")
        print(f"Likes:     {db.query(Like).count()}")
        print()
        return True
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    Base.metadata.create_all(bind=engine)
    command = sys.argv[1]

    if command == "--list":
        list_users()

    elif command == "--promote":
        if len(sys.argv) < 3:
            print("Usage: python manage_users.py --promote <email>")
            sys.exit(1)
        set_role(sys.argv[2], ROLE_ADMIN)

    elif command == "--demote":
        if len(sys.argv) < 3:
            print("Usage: python manage_users.py --demote <email>")
            sys.exit(1)
        set_role(sys.argv[2], ROLE_USER)

    elif command == "--stats":
        show_stats()

    else:
        print(f"Unknown command: {command}")
        print(__doc__)
        sys.exit(1)
