# CoursePortal - Course portal backend
# Copyright (C) 2026 (linuxdev)
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.


import logging
import os

from config import config_path, create_config_file, settings
from crud_ops import create_user, get_user_by_email
from database import Base, SessionLocal, check_connection, engine

logger = logging.getLogger(__name__)


def init_db(bind=None, session_factory=None):
    """Create missing tables and the configured admin account."""
    Base.metadata.create_all(bind=bind if bind is not None else engine)

    db = (session_factory or SessionLocal)()
    try:
        if not get_user_by_email(db, settings.admin_email):
            create_user(db, settings.admin_name, settings.admin_email, settings.admin_password)
            logger.info("Admin user %s created", settings.admin_email)
    finally:
        db.close()


def main():
    """Entry point of the courseportal-setup command."""
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("Starting setup")

    path = config_path()
    if not os.path.exists(path):
        create_config_file(path)
        logger.info("Config file %s created", path)

    check_connection()
    init_db()
    logger.info("Setup completed")


if __name__ == "__main__":
    main()
