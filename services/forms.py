"""Form state shared by the checkout, listing and profile pages.

Each form is a dataclass with a fixed field set. Values arrive from the
browser keyed by their JSON (camelCase) names; ``update`` maps them onto
attributes and refuses names the form does not have.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import ClassVar, Dict, List

from core.imports import Decimal, EmailStr, InvalidOperation, SchemaError, TypeAdapter, time
from core.errors import ValidationError
from models.productModels import Category, Condition
from models.purchaseModels import PaymentMethod

EMAIL = TypeAdapter(EmailStr)


class StatusMessage:
    """The single transient message a page shows ("Cart cleared", "Checkout failed", ...)."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self.clear()

    def clear(self):
        self.text = None
        self.level = None
        self.kind = None
        self.status = None
        self._expires_at = None

    def _set(self, text, level, error=None, ttl_ms=None):
        self.text = text
        self.level = level
        self.kind = type(error).__name__ if error is not None else None
        self.status = getattr(error, "status_code", None)
        self._expires_at = self._clock() + ttl_ms / 1000.0 if ttl_ms else None

    def success(self, text, ttl_ms=None):
        self._set(text, "success", ttl_ms=ttl_ms)

    def info(self, text):
        self._set(text, "info")

    def error(self, text, error=None):
        self._set(text, "error", error=error)

    @property
    def current(self):
        if self.text is None:
            return None
        if self._expires_at is not None and self._clock() >= self._expires_at:
            self.clear()
            return None
        return {"text": self.text, "level": self.level, "error": self.kind, "status": self.status}

    def take(self):
        """Return the message (if still live) and forget it."""
        value = self.current
        self.clear()
        return value


def parse_price(raw):
    try:
        price = Decimal(str(raw).strip())
    except InvalidOperation:
        raise ValidationError("Invalid price. Must be a number.") from None
    if not price.is_finite() or price < 0:
        raise ValidationError("Invalid price. Must be zero or more.")
    return price


def parse_quantity(raw, minimum=1):
    try:
        quantity = int(str(raw).strip())
    except ValueError:
        raise ValidationError("Quantity must be a whole number") from None
    if quantity < minimum:
        raise ValidationError(f"Quantity must be at least {minimum}")
    return quantity


def parse_choice(enum_cls, raw, label):
    try:
        return enum_cls(raw)
    except ValueError:
        raise ValidationError(f"Invalid {label}: {raw}") from None


class _Form:
    # JSON names that differ from attribute names
    ALIASES: ClassVar[Dict[str, str]] = {}

    def update(self, values):
        names = {f.name for f in fields(self)}
        for key, value in values.items():
            name = self.ALIASES.get(key, key)
            if name not in names:
                raise ValidationError(f"Unknown field: {key}")
            setattr(self, name, "" if value is None else str(value))
        return self

    @classmethod
    def json_name(cls, name):
        for alias, attribute in cls.ALIASES.items():
            if attribute == name:
                return alias
        return name


@dataclass
class ShippingAddressForm(_Form):
    ALIASES: ClassVar[Dict[str, str]] = {"zipCode": "zip_code"}

    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    def missing_fields(self):
        return [self.json_name(f.name) for f in fields(self) if not getattr(self, f.name).strip()]

    def to_payload(self):
        return {self.json_name(f.name): getattr(self, f.name).strip() for f in fields(self)}


@dataclass
class CheckoutForm:
    shipping_address: ShippingAddressForm = field(default_factory=ShippingAddressForm)
    payment_method: PaymentMethod = PaymentMethod.CASH

    def update(self, values):
        for key, value in values.items():
            if key == "shippingAddress":
                if not isinstance(value, Mapping):
                    raise ValidationError("shippingAddress must be an object")
                self.shipping_address.update(value)
            elif key.startswith("shippingAddress."):
                self.shipping_address.update({key.split(".", 1)[1]: value})
            elif key == "paymentMethod":
                self.payment_method = parse_choice(PaymentMethod, value, "payment method")
            else:
                raise ValidationError(f"Unknown field: {key}")
        return self

    def validate(self):
        missing = self.shipping_address.missing_fields()
        if missing:
            raise ValidationError("Please fill in all shipping address fields: " + ", ".join(missing))
        return self.to_payload()

    def to_payload(self):
        return {
            "shippingAddress": self.shipping_address.to_payload(),
            "paymentMethod": self.payment_method.value,
        }


@dataclass
class ListingEditForm(_Form):
    """Inline edit of one listing; only these fields are ever sent."""

    title: str = ""
    description: str = ""
    category: str = ""
    price: str = ""
    condition: str = ""
    location: str = ""
    quantity: str = ""

    @classmethod
    def from_product(cls, product):
        return cls(
            title=product.title,
            description=product.description,
            category=product.category.value,
            price=str(product.price),
            condition=product.condition.value,
            location=product.location,
            quantity=str(product.quantity),
        )

    def validate(self):
        title = self.title.strip()
        if not title:
            raise ValidationError("Title is required")
        return {
            "title": title,
            "description": self.description.strip(),
            "category": parse_choice(Category, self.category, "category").value,
            "price": float(parse_price(self.price)),
            "condition": parse_choice(Condition, self.condition, "condition").value,
            "location": self.location.strip(),
            "quantity": parse_quantity(self.quantity),
        }

    def to_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class ListingForm(ListingEditForm):
    category: str = Category.ELECTRONICS.value
    condition: str = Condition.GOOD.value
    quantity: str = "1"
    images: List[str] = field(default_factory=list)

    def update(self, values):
        values = dict(values)
        if "images" in values:
            images = values.pop("images") or []
            if isinstance(images, str):
                images = [images]
            self.images = [str(url) for url in images]
        return super().update(values)

    def image_urls(self):
        return [url.strip() for url in self.images if url and url.strip()]

    def to_payload(self, image_urls):
        payload = self.validate()
        payload["images"] = list(image_urls)
        return payload


@dataclass
class ProfileForm(_Form):
    ALIASES: ClassVar[Dict[str, str]] = {"profileImage": "profile_image"}

    username: str = ""
    email: str = ""
    bio: str = ""
    location: str = ""
    phone: str = ""
    profile_image: str = ""

    @classmethod
    def from_user(cls, user):
        if user is None:
            return cls()
        return cls(
            username=user.username,
            email=user.email,
            bio=user.bio or "",
            location=user.location or "",
            phone=user.phone or "",
            profile_image=user.profile_image or "",
        )

    def validate(self):
        if not self.username.strip():
            raise ValidationError("Username cannot be empty")
        try:
            EMAIL.validate_python(self.email.strip())
        except SchemaError:
            raise ValidationError("Invalid email format.") from None
        return self.to_payload()

    def to_payload(self):
        return {self.json_name(f.name): getattr(self, f.name).strip() for f in fields(self)}
