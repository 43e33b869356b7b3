"""Package summaries, grants and the admin override."""

from datetime import timedelta
import logging

from conftest import NOW, actor_for, make_package
import pytest

from app.core.exceptions import ForbiddenException, NotFoundException, ValidationException
from app.services.package_service import PackageService, PackageSummary


@pytest.fixture
def package_service(service_factory) -> PackageService:
    return service_factory(PackageService)


class TestSummary:
    def test_zeros_without_package(self, package_service, student):
        summary = package_service.get_active_package_summary(actor_for(student))
        assert summary == PackageSummary.empty()
        assert summary.remaining_lessons == 0

    def test_reports_active_package(self, db, package_service, student):
        package = make_package(db, student, total=12, used=4)

        summary = package_service.get_active_package_summary(actor_for(student))

        assert summary.package_id == package.id
        assert (summary.total_lessons, summary.used_lessons, summary.remaining_lessons) == (12, 4, 8)
        assert summary.valid_until == NOW + timedelta(days=60)

    def test_expired_package_is_ignored(self, db, package_service, student):
        make_package(db, student, valid_until=NOW - timedelta(seconds=1))
        assert package_service.get_active_package_summary(actor_for(student)).package_id is None

    def test_staff_may_read_any_student(self, package_service, teacher, student, other_student, package):
        assert package_service.get_active_package_summary(actor_for(teacher), student.id).total_lessons == 10
        with pytest.raises(ForbiddenException):
            package_service.get_active_package_summary(actor_for(other_student), student.id)


class TestGrant:
    def test_admin_grants_balanced_package(self, package_service, admin, student):
        package = package_service.grant_package(
            actor_for(admin), student.id, 20, NOW, NOW + timedelta(days=90)
        )

        assert (package.total_lessons, package.used_lessons, package.remaining_lessons) == (20, 0, 20)
        assert package.is_balanced
        assert package.created_at == NOW

    def test_newest_grant_becomes_active(self, db, package_service, admin, student):
        make_package(db, student, total=5, created_at=NOW - timedelta(days=10))

        granted = package_service.grant_package(
            actor_for(admin), student.id, 8, NOW, NOW + timedelta(days=30)
        )

        assert package_service.get_active_package_summary(actor_for(student)).package_id == granted.id

    def test_validation(self, package_service, admin, student, teacher):
        actor = actor_for(admin)
        until = NOW + timedelta(days=30)
        with pytest.raises(ValidationException):
            package_service.grant_package(actor, student.id, 0, NOW, until)
        with pytest.raises(ValidationException):
            package_service.grant_package(actor, student.id, 5, until, NOW)
        with pytest.raises(ValidationException):
            package_service.grant_package(actor, teacher.id, 5, NOW, until)
        with pytest.raises(NotFoundException):
            package_service.grant_package(actor, "missing", 5, NOW, until)

    def test_only_admins_grant(self, package_service, teacher, student):
        with pytest.raises(ForbiddenException):
            package_service.grant_package(
                actor_for(teacher), student.id, 5, NOW, NOW + timedelta(days=1)
            )


class TestOverride:
    def test_override_may_unbalance_and_warns(self, caplog, package_service, admin, package):
        with caplog.at_level(logging.WARNING):
            updated = package_service.admin_override(
                actor_for(admin), package.id, remaining_lessons=-2
            )

        assert updated.remaining_lessons == -2
        assert not updated.is_balanced
        assert "(unbalanced)" in caplog.text

    def test_balanced_override(self, caplog, package_service, admin, package):
        with caplog.at_level(logging.WARNING):
            updated = package_service.admin_override(
                actor_for(admin), package.id, total_lessons=12, remaining_lessons=12
            )

        assert updated.is_balanced
        assert "overrode package" in caplog.text
        assert "(unbalanced)" not in caplog.text

    def test_override_guards(self, package_service, admin, teacher, package):
        with pytest.raises(ForbiddenException):
            package_service.admin_override(actor_for(teacher), package.id, used_lessons=0)
        with pytest.raises(NotFoundException):
            package_service.admin_override(actor_for(admin), "missing", used_lessons=0)
        with pytest.raises(ValidationException):
            package_service.admin_override(actor_for(admin), package.id, total_lessons=-1)
