import argparse
import logging

from schoollib.core.config import configure_logging
from schoollib.core.database import Base, SessionLocal, engine
from schoollib.models.models import Book, Member

logger = logging.getLogger("schoollib")


def seed(db):
    # idempotent: only fills empty tables
    if db.query(Member).count() == 0:
        db.add_all([
            Member(name='Anu Joseph', barcode='s1001', batch='10A', category='student'),
            Member(name='Rahul Nair', barcode='s1002', batch='10B', category='student'),
            Member(name='Meera Thomas', barcode='t2001', category='teacher'),
            Member(name='Class 7C', barcode='c3001', batch='7C', category='class'),
        ])
    if db.query(Book).count() == 0:
        db.add_all([
            Book(title='Wings of Fire', author='A. P. J. Abdul Kalam', barcode='B0001', pages=180,
                 shelf_location='A1'),
            Book(title='The Jungle Book', author='Rudyard Kipling', barcode='B0002', pages=277,
                 shelf_location='C3'),
        ])
    db.commit()


def main(argv=None):
    parser = argparse.ArgumentParser(prog='schoollib', description='School library utilities')
    sub = parser.add_subparsers(dest='command', required=True)
    sub.add_parser('initdb', help='Create tables')
    sub.add_parser('seed', help='Create tables and seed sample data')
    args = parser.parse_args(argv)

    configure_logging()
    Base.metadata.create_all(bind=engine)
    logger.info('Database tables ready')
    if args.command == 'seed':
        db = SessionLocal()
        try:
            seed(db)
            logger.info('Seeded sample data')
        finally:
            db.close()
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
