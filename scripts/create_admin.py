"""One-time bootstrap script to create an ADMIN user and print a bearer token.

Usage:
  python scripts/create_admin.py --name Admin --email admin@example.com --password secret
Or provide via env: ADMIN_NAME, ADMIN_EMAIL, ADMIN_PASSWORD
"""
import os
import argparse
from getpass import getpass

from store_core.app.db import SessionLocal, create_db_and_tables
from store_core.app.deps import create_access_token, get_password_hash
from store_core.app.logging_setup import configure_logging
from store_core.app import models


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument('--name')
    parser.add_argument('--email')
    parser.add_argument('--password')
    args = parser.parse_args()

    name = args.name or os.getenv('ADMIN_NAME') or 'Admin'
    email = args.email or os.getenv('ADMIN_EMAIL')
    password = args.password or os.getenv('ADMIN_PASSWORD')
    if not email:
        email = input('Email: ').strip()
    if not password:
        password = getpass('Password: ')
    email = email.lower()

    configure_logging()
    create_db_and_tables()
    db = SessionLocal()
    try:
        user = db.query(models.User).filter(models.User.email == email).first()
        if user:
            print('User already exists:', email)
        else:
            user = models.User(
                name=name,
                email=email,
                password_hash=get_password_hash(password),
                role=models.UserRole.ADMIN,
                access_type=models.AccessType.ALL,
            )
            db.add(user)
            db.commit()
            print('Created ADMIN user:', email)
        print('Bearer token:', create_access_token({"sub": user.email}))
    finally:
        db.close()


if __name__ == '__main__':
    main()
