"""Credit moves and active-package selection."""

from datetime import timedelta

from conftest import NOW, make_package

from app.repositories.factory import RepositoryFactory


def test_consume_credit_moves_one_lesson(db, student):
    package = make_package(db, student, total=5)
    repo = RepositoryFactory.create_package_repository(db)

    assert repo.consume_credit(package.id) is True
    db.commit()

    assert (package.used_lessons, package.remaining_lessons) == (1, 4)
    assert package.is_balanced


def test_consume_credit_refuses_when_exhausted(db, student):
    package = make_package(db, student, total=2, used=2)
    repo = RepositoryFactory.create_package_repository(db)

    assert repo.consume_credit(package.id) is False
    assert (package.used_lessons, package.remaining_lessons) == (2, 0)


def test_refund_credit_applies_to_untouched_package(db, student):
    package = make_package(db, student, total=3)
    repo = RepositoryFactory.create_package_repository(db)

    assert repo.refund_credit(package.id) is True
    db.commit()

    assert (package.used_lessons, package.remaining_lessons) == (-1, 4)
    assert package.is_balanced


def test_refund_credit_unknown_package(db):
    repo = RepositoryFactory.create_package_repository(db)
    assert repo.refund_credit("01HZZZZZZZZZZZZZZZZZZZZZZZ") is False


def test_active_package_ignores_expired_ones(db, student):
    make_package(
        db,
        student,
        valid_from=NOW - timedelta(days=90),
        valid_until=NOW - timedelta(days=1),
    )
    repo = RepositoryFactory.create_package_repository(db)
    assert repo.get_active_for_user(student.id, NOW) is None


def test_most_recent_valid_package_is_active(db, student):
    older = make_package(db, student, total=5, created_at=NOW - timedelta(days=20))
    newer = make_package(db, student, total=8, created_at=NOW - timedelta(days=2))
    repo = RepositoryFactory.create_package_repository(db)

    active = repo.get_active_for_user(student.id, NOW)
    assert active.id == newer.id
    assert active.id != older.id
