import logging

from app.db import Base, SessionLocal, engine
from app.services.bootstrap_service import run_bootstrap


logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s %(message)s')
logger = logging.getLogger('bootstrap')


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        result = run_bootstrap(db)
        admin = result['super_admin']
        if admin.get('seeded'):
            logger.info('Super admin created: %s', admin.get('email'))
        else:
            logger.info('Super admin not seeded: %s', admin.get('reason'))
        logger.info('Bootstrap finished: admin_department_id=%s settings_created=%s',
                    result['admin_department_id'], result['settings_created'])
    finally:
        db.close()


if __name__ == '__main__':
    main()
