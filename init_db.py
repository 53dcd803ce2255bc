#!/usr/bin/env python
"""Database initialization script for the forum backend.

Creates all database tables and seeds the default categories and the badge
catalogue. Safe to run more than once.

Usage:
    python init_db.py
"""

import os
import sys
from app import create_app, db
from app.services.seed import seed_badges, seed_categories


def init_database():
    """Initialize the database by creating all tables and reference data."""

    config_name = os.getenv('FLASK_ENV', 'development')
    app = create_app(config_name)

    print(f"\n{'='*60}")
    print(f"Database Initialization for {config_name.upper()} Environment")
    print(f"{'='*60}\n")

    with app.app_context():
        try:
            print("Creating database tables...")
            print(f"Database URI: {app.config['SQLALCHEMY_DATABASE_URI']}\n")

            db.create_all()
            print("Database tables created.\n")

            categories = seed_categories()
            badges = seed_badges()
            print(f"  ✓ {'categories':<12} - {categories} created")
            print(f"  ✓ {'badges':<12} - {badges} created")

            print(f"\n{'='*60}")
            print("Database initialization complete!")
            print(f"{'='*60}\n")
            print("Next steps:")
            print("  1. Start the Flask server: python wsgi.py")
            print("  2. Register a user: POST /api/auth/register")
            print("\n")

            return True

        except Exception as e:
            print(f"Error initializing database: {type(e).__name__}: {e}\n")
            return False


if __name__ == '__main__':
    sys.exit(0 if init_database() else 1)
