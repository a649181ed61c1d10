"""
Application initialization module
Handles initial setup tasks like creating the default admin account
"""

import logging

from sqlalchemy.orm import Session

from learnsphere.core.config import settings
from learnsphere.core.context import Role
from learnsphere.core.hasher import PasswordHelper
from learnsphere.models.user import User

logger = logging.getLogger(__name__)


def init_super_admin(db: Session) -> None:
    """
    Initialize the admin user if it doesn't exist.

    Checks if any admin exists in the database. If not, creates one using
    credentials from settings (config.py).

    Args:
        db: Database session
    """
    try:
        existing_admin = db.query(User).filter(User.role == Role.ADMIN.value).first()

        if existing_admin:
            logger.info(
                f"✅ Admin user already exists (ID: {existing_admin.id}, Email: {existing_admin.email})"
            )
            return

        admin = User(
            name=settings.admin_default_name,
            email=settings.admin_default_email,
            hashed_password=PasswordHelper.hash_password(
                settings.admin_default_password
            ),
            role=Role.ADMIN.value,
            is_active=True,
        )

        db.add(admin)
        db.commit()
        db.refresh(admin)

        logger.info("=" * 60)
        logger.info("🎉 ADMIN CREATED SUCCESSFULLY!")
        logger.info("=" * 60)
        logger.info(f"Email: {settings.admin_default_email}")
        logger.info("=" * 60)
        logger.warning("⚠️  IMPORTANT: Change the default password immediately!")
        logger.info("=" * 60)

    except Exception as e:
        logger.error(f"❌ Failed to initialize admin: {e}")
        db.rollback()
        raise


def initialize_application(db: Session) -> None:
    """
    Run all application initialization tasks.

    Args:
        db: Database session
    """
    logger.info("🚀 Starting application initialization...")

    init_super_admin(db)

    logger.info("✅ Application initialization completed!")
