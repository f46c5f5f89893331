from __future__ import annotations

import threading
from uuid import UUID, uuid4

import pytest

from src.vintage.domain.models import Role
from src.vintage.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from src.vintage.repositories import AccountRepository
from src.vintage.services import AccountService
from src.vintage.services.account_service import NewAddress
from tests.conftest import row_count
from tests.mocks.blob_storage import RecordingBlobStorage, image

pytestmark = pytest.mark.unit


def _address(label: str) -> NewAddress:
    return NewAddress(
        label=label,
        recipient_name="Rina",
        phone="+62811000000",
        street="Jl. Braga 12",
        city="Bandung",
        postal_code="40111",
    )


def test_register_creates_account_with_customer_role(account_service: AccountService, customer_id: UUID) -> None:
    account = account_service.get_profile(customer_id)

    assert account.username == "rina"
    assert account.password_hash != "correct-horse"
    assert account_service.store.list_roles(customer_id) == [Role.CUSTOMER]


def test_duplicate_username_or_email_conflicts(account_service: AccountService, customer_id: UUID, engine) -> None:
    with pytest.raises(ConflictError, match="username already taken"):
        account_service.register_customer(username="rina", email="other@example.com", password="long-enough")
    with pytest.raises(ConflictError, match="email already registered"):
        account_service.register_customer(username="other", email="RINA@example.com", password="long-enough")

    assert row_count(engine, "accounts") == 1


def test_concurrent_registration_admits_exactly_one(
    account_service: AccountService, engine, monkeypatch: pytest.MonkeyPatch
) -> None:
    both_checked = threading.Barrier(2, timeout=5)
    insert_account = AccountRepository.insert_account

    def insert_after_both_checked(self: AccountRepository, **kwargs):
        both_checked.wait()
        return insert_account(self, **kwargs)

    monkeypatch.setattr(AccountRepository, "insert_account", insert_after_both_checked)
    outcomes: list[object] = []

    def register(email: str) -> None:
        try:
            outcomes.append(
                account_service.register_customer(username="alice", email=email, password="long-enough")
            )
        except Exception as exc:
            outcomes.append(exc)

    threads = [
        threading.Thread(target=register, args=(email,)) for email in ("alice@example.com", "alice2@example.com")
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert sorted(type(outcome).__name__ for outcome in outcomes) == ["Account", "ConflictError"]
    assert row_count(engine, "accounts") == 1
    assert row_count(engine, "account_roles") == 1


def test_registration_is_atomic_when_role_assignment_fails(account_service: AccountService, engine) -> None:
    with engine.begin() as conn:
        conn.exec_driver_sql("DELETE FROM roles WHERE name = 'customer'")

    with pytest.raises(NotFoundError):
        account_service.register_customer(username="ghost", email="ghost@example.com", password="long-enough")

    assert row_count(engine, "accounts") == 0
    assert row_count(engine, "account_roles") == 0


@pytest.mark.parametrize(
    ("username", "email", "password"),
    [
        ("", "a@example.com", "long-enough"),
        ("a@b", "a@example.com", "long-enough"),
        ("alice", "not-an-email", "long-enough"),
        ("alice", "a@example.com", "short"),
    ],
)
def test_registration_validates_input(account_service: AccountService, username: str, email: str, password: str) -> None:
    with pytest.raises(ValidationError):
        account_service.register_customer(username=username, email=email, password=password)


@pytest.mark.parametrize("identifier", ["rina", "rina@example.com"])
def test_authenticate_by_username_or_email(account_service: AccountService, customer_id: UUID, identifier: str) -> None:
    principal = account_service.authenticate(identifier, "correct-horse", Role.CUSTOMER)

    assert principal.account_id == customer_id
    assert principal.role is Role.CUSTOMER


def test_authenticate_failures_are_indistinguishable(account_service: AccountService, customer_id: UUID) -> None:
    failures = []
    for identifier, password, role in [
        ("rina", "wrong-password", Role.CUSTOMER),
        ("nobody", "correct-horse", Role.CUSTOMER),
        ("rina", "correct-horse", Role.SELLER),
    ]:
        with pytest.raises(UnauthorizedError) as excinfo:
            account_service.authenticate(identifier, password, role)
        failures.append(str(excinfo.value))

    assert set(failures) == {"invalid credentials"}


def test_update_profile_rejects_email_of_another_account(account_service: AccountService, customer_id: UUID) -> None:
    account_service.register_customer(username="budi", email="budi@example.com", password="long-enough")

    with pytest.raises(ConflictError):
        account_service.update_profile(customer_id, {"email": "budi@example.com"})

    updated = account_service.update_profile(customer_id, {"full_name": "Rina S.", "phone": None})
    assert updated.full_name == "Rina S."


def test_avatar_replacement_deletes_previous_avatar(
    account_service: AccountService, customer_id: UUID, storage: RecordingBlobStorage
) -> None:
    first = account_service.update_avatar(customer_id, image("me.png"))
    second = account_service.update_avatar(customer_id, image("me-2.png"))

    assert first.avatar_url == storage.uploads[0]
    assert second.avatar_url == storage.uploads[1]
    assert storage.deletes == [storage.uploads[0]]


def test_avatar_upload_for_missing_account_uploads_nothing(
    account_service: AccountService, storage: RecordingBlobStorage
) -> None:
    with pytest.raises(NotFoundError):
        account_service.update_avatar(uuid4(), image())

    assert storage.uploads == []


def test_first_address_becomes_primary(account_service: AccountService, customer_id: UUID) -> None:
    home = account_service.add_address(customer_id, _address("Home"))
    office = account_service.add_address(customer_id, _address("Office"))

    assert home.is_primary
    assert not office.is_primary


def test_set_primary_address_leaves_single_primary(account_service: AccountService, customer_id: UUID) -> None:
    home = account_service.add_address(customer_id, _address("Home"))
    office = account_service.add_address(customer_id, _address("Office"))

    result = account_service.set_primary_address(customer_id, office.id)

    assert result.is_primary
    addresses = account_service.list_addresses(customer_id)
    assert [a.id for a in addresses if a.is_primary] == [office.id]
    assert addresses[0].id == office.id
    assert not account_service.get_address(customer_id, home.id).is_primary


def test_address_of_another_account_is_not_found(account_service: AccountService, customer_id: UUID) -> None:
    home = account_service.add_address(customer_id, _address("Home"))
    other = account_service.register_customer(username="budi", email="budi@example.com", password="long-enough")

    with pytest.raises(NotFoundError):
        account_service.set_primary_address(other.id, home.id)
    with pytest.raises(NotFoundError):
        account_service.delete_address(other.id, home.id)

    account_service.delete_address(customer_id, home.id)
    assert account_service.list_addresses(customer_id) == []


def test_update_address_changes_only_given_fields(account_service: AccountService, customer_id: UUID) -> None:
    home = account_service.add_address(customer_id, _address("Home"))

    updated = account_service.update_address(customer_id, home.id, {"city": "Jakarta", "label": None})

    assert updated.city == "Jakarta"
    assert updated.label == "Home"
