"""User aggregate root with its Address entity."""

import re
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, String

from identity.domain import identity
from shared.records import load

_EMAIL_PATTERN = re.compile(r"^[^@\s;,<>()\"]+@[^@\s;,<>()\"]+\.[^@\s;,<>()\"]+$")
_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")


class UserRole(Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    CUSTOMER = "customer"
    DRIVER = "driver"
    VENDOR = "vendor"


class UserStatus(Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class PriceTier(Enum):
    STANDARD = "standard"
    WHOLESALE = "wholesale"


@identity.entity(part_of="User")
class Address:
    """A delivery address. The first one is used at checkout."""

    street: String(required=True, max_length=255)
    city: String(required=True, max_length=100)
    state: String(max_length=100)
    zip: String(max_length=20)

    def as_shipping_address(self) -> dict:
        return {"street": self.street, "city": self.city, "state": self.state, "zip": self.zip}


@identity.aggregate
class User:
    """A person with an account on the storefront: shopper, staff or partner."""

    name: String(required=True, max_length=150)
    email: String(required=True, max_length=254)
    phone: String(max_length=20)
    role: String(choices=UserRole, default=UserRole.CUSTOMER.value)
    status: String(choices=UserStatus, default=UserStatus.ACTIVE.value)
    price_tier: String(choices=PriceTier, default=PriceTier.STANDARD.value)
    addresses: HasMany(Address)
    created_at: DateTime(default=lambda: datetime.now(UTC))

    @invariant.post
    def email_must_be_well_formed(self):
        if self.email and not _EMAIL_PATTERN.match(self.email):
            raise ValidationError({"email": [f"Invalid email address: {self.email!r}"]})

    @invariant.post
    def phone_must_be_well_formed(self):
        if self.phone and (not re.search(r"\d", self.phone) or not _PHONE_PATTERN.match(self.phone)):
            raise ValidationError({"phone": [f"Invalid phone number: {self.phone!r}"]})

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    @property
    def default_address(self) -> Address | None:
        return self.addresses[0] if self.addresses else None

    def suspend(self):
        self.status = UserStatus.SUSPENDED.value

    def reactivate(self):
        self.status = UserStatus.ACTIVE.value


def user_from_record(record: dict) -> User:
    addresses = [load(Address, address) for address in record.get("addresses") or []]
    return load(User, record, addresses=addresses)
