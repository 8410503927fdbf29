"""Unit tests for profiles/service.py.

Covers:
- add_account(): student field checks, faculty subjects coercion, admin
  fallback password, duplicate email
- update_account(): partial semantics, admin email uniqueness, short admin
  passwords ignored
- update_my_profile(): role restriction, own-profile targeting
- delete_account(): not-found, admin self-delete, last-admin guard, and two
  concurrent deletes that cannot both succeed
"""

import threading

import pytest

from auth.models import ADMIN, FACULTY, STUDENT, AdminProfile, StudentProfile
from auth.store import AccountStore
from auth.tokens import authenticate_user
from core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from profiles import service
from tests.conftest import create_account

_STUDENT_FIELDS = {"roll_no": "R1", "department": "CS", "course": "BTech"}


def _add_admin(store, email, password="secret1"):
    return service.add_account(
        store, ADMIN, "Adm", email, password, {"employee_id": "A1", "position": "Dean", "department": "Office"}
    )


class TestAddAccount:
    def test_student_created_with_normalized_email(self, store):
        account = service.add_account(store, STUDENT, " Ann ", " Ann@X.com ", "secret1", _STUDENT_FIELDS)
        assert account.user.email == "ann@x.com"
        assert account.user.name == "Ann"
        assert account.user.role == STUDENT
        assert account.profile.roll_no == "R1"

    def test_student_missing_fields_writes_nothing(self, store):
        with pytest.raises(ValidationFailed):
            service.add_account(store, STUDENT, "Ann", "ann@x.com", "secret1", {"roll_no": "R1"})
        assert store.get_user_by_email("ann@x.com") is None

    def test_password_required_for_students_and_faculty(self, store):
        with pytest.raises(ValidationFailed):
            service.add_account(store, FACULTY, "Fay", "fay@x.com", None, {})

    def test_faculty_scalar_subject_becomes_list(self, store):
        account = service.add_account(store, FACULTY, "Fay", "fay@x.com", "secret1", {"subjects": "Math"})
        assert account.profile.subjects == ["Math"]
        assert store.get_account(FACULTY, account.profile.id).profile.subjects == ["Math"]

    def test_faculty_without_subjects_gets_empty_list(self, store):
        account = service.add_account(store, FACULTY, "Fay", "fay@x.com", "secret1", {})
        assert account.profile.subjects == []

    def test_duplicate_email_conflicts(self, store):
        service.add_account(store, STUDENT, "Ann", "ann@x.com", "secret1", _STUDENT_FIELDS)
        with pytest.raises(Conflict):
            service.add_account(store, FACULTY, "Other", "ANN@x.com", "secret1", {})
        assert store.list_accounts(FACULTY) == []

    def test_admin_without_password_uses_fallback(self, store, caplog):
        with caplog.at_level("WARNING", logger="campusdesk.profiles"):
            account = service.add_account(store, ADMIN, "Adm", "adm@x.com", None, {})
        assert authenticate_user(store, "adm@x.com", "changeme") is not None
        assert any("fallback password" in r.getMessage() for r in caplog.records)
        assert account.profile.employee_id == ""


class TestUpdateAccount:
    def test_partial_update_leaves_other_fields(self, store):
        account = service.add_account(store, STUDENT, "Ann", "ann@x.com", "secret1", _STUDENT_FIELDS)
        updated = service.update_account(store, STUDENT, account.profile.id, {"course": "MTech"})
        assert updated.profile.course == "MTech"
        assert updated.profile.roll_no == "R1"
        assert updated.user.name == "Ann"

    def test_empty_update_is_a_noop(self, store):
        account = service.add_account(store, STUDENT, "Ann", "ann@x.com", "secret1", _STUDENT_FIELDS)
        updated = service.update_account(store, STUDENT, account.profile.id, {})
        assert updated.profile == account.profile
        assert updated.user.name == account.user.name

    def test_name_goes_to_user(self, store):
        account = service.add_account(store, FACULTY, "Fay", "fay@x.com", "secret1", {})
        updated = service.update_account(store, FACULTY, account.profile.id, {"name": "Dr Fay", "subjects": "AI"})
        assert updated.user.name == "Dr Fay"
        assert updated.profile.subjects == ["AI"]

    def test_missing_profile(self, store):
        with pytest.raises(NotFound):
            service.update_account(store, STUDENT, 999, {"course": "X"})

    def test_admin_email_must_be_unique(self, store):
        _add_admin(store, "a@x.com")
        second = _add_admin(store, "b@x.com")
        with pytest.raises(Conflict):
            service.update_account(store, ADMIN, second.profile.id, {"email": "A@x.com"})

    def test_admin_may_keep_own_email(self, store):
        admin = _add_admin(store, "a@x.com")
        updated = service.update_account(store, ADMIN, admin.profile.id, {"email": "a@x.com", "position": "Head"})
        assert updated.user.email == "a@x.com"
        assert updated.profile.position == "Head"

    def test_short_admin_password_ignored(self, store):
        admin = _add_admin(store, "a@x.com", password="secret1")
        service.update_account(store, ADMIN, admin.profile.id, {"password": "abc"})
        assert authenticate_user(store, "a@x.com", "secret1") is not None
        assert authenticate_user(store, "a@x.com", "abc") is None

    def test_admin_password_changed(self, store):
        admin = _add_admin(store, "a@x.com", password="secret1")
        service.update_account(store, ADMIN, admin.profile.id, {"password": "newsecret"})
        assert authenticate_user(store, "a@x.com", "newsecret") is not None


class TestUpdateMyProfile:
    def test_student_updates_own_profile(self, store):
        account = service.add_account(store, STUDENT, "Ann", "ann@x.com", "secret1", _STUDENT_FIELDS)
        updated = service.update_my_profile(store, account.user, {"department": "EE", "employee_id": "ignored"})
        assert updated.profile.id == account.profile.id
        assert updated.profile.department == "EE"
        assert updated.profile.roll_no == "R1"

    def test_admin_refused(self, store):
        admin = _add_admin(store, "a@x.com")
        with pytest.raises(Forbidden):
            service.update_my_profile(store, admin.user, {"department": "X"})

    def test_missing_profile(self, store):
        account = service.add_account(store, FACULTY, "Fay", "fay@x.com", "secret1", {})
        store.delete_account(FACULTY, account.profile.id)
        with pytest.raises(NotFound):
            service.update_my_profile(store, account.user, {"department": "X"})


class TestDeleteAccount:
    def test_student_deleted(self, store):
        account = service.add_account(store, STUDENT, "Ann", "ann@x.com", "secret1", _STUDENT_FIELDS)
        service.delete_account(store, STUDENT, account.profile.id)
        assert store.get_user(account.user.id) is None

    def test_missing_student(self, store):
        with pytest.raises(NotFound):
            service.delete_account(store, STUDENT, 999)

    def test_admin_cannot_delete_self(self, store):
        first = _add_admin(store, "a@x.com")
        _add_admin(store, "b@x.com")
        with pytest.raises(Forbidden):
            service.delete_account(store, ADMIN, first.profile.id, caller=first.user)
        assert store.count_admins() == 2

    def test_last_admin_kept(self, store):
        only = _add_admin(store, "a@x.com")
        with pytest.raises(Forbidden):
            service.delete_account(store, ADMIN, only.profile.id)
        assert store.count_admins() == 1

    def test_admin_deletes_other_admin(self, store):
        first = _add_admin(store, "a@x.com")
        second = _add_admin(store, "b@x.com")
        service.delete_account(store, ADMIN, second.profile.id, caller=first.user)
        assert store.count_admins() == 1

    def test_missing_admin(self, store):
        _add_admin(store, "a@x.com")
        with pytest.raises(NotFound):
            service.delete_account(store, ADMIN, 999)


def test_concurrent_admin_deletes_leave_one_admin(tmp_path):
    """Two admins deleting each other at the same time: one delete must fail."""
    store = AccountStore(f"sqlite:///{tmp_path / 'concurrent.db'}")
    try:
        first = create_account(store, "A", "a@x.com", "secret1", ADMIN, AdminProfile())
        second = create_account(store, "B", "b@x.com", "secret1", ADMIN, AdminProfile())
        create_account(store, "S", "s@x.com", "secret1", STUDENT, StudentProfile(roll_no="R1"))

        barrier = threading.Barrier(2)
        outcomes: list[str] = []

        def attempt(target, caller):
            barrier.wait()
            try:
                service.delete_account(store, ADMIN, target.profile.id, caller=caller.user)
                outcomes.append("deleted")
            except (Forbidden, NotFound):
                outcomes.append("refused")

        threads = [
            threading.Thread(target=attempt, args=(second, first)),
            threading.Thread(target=attempt, args=(first, second)),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["deleted", "refused"]
        assert store.count_admins() == 1
    finally:
        store.close()
