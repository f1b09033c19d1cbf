"""Product payload validation.

``validate_product`` reports every problem with a create payload as a list
of field errors instead of raising, so a client gets all of them in one
response. ``parse_patch`` applies the narrower, field-by-field checks used
for partial updates.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.errors import FieldError, ValidationError
from app.domain.product import ProductInput, ProductPatch
from app.utils.text import clean_line

INVALID_PRODUCT_DATA = "Invalid product data"

# Fields a patch may omit but may not set to null
NON_NULLABLE_FIELDS = (
    "name", "description", "category", "price", "images",
    "is_featured", "order", "related_products", "reviews",
)


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a price-like value, returning None when it is not a finite number.

    Numbers and numeric strings are accepted; booleans are not.

    Examples:
        >>> parse_amount("12.50")
        Decimal('12.50')
        >>> parse_amount(True) is None
        True
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
    else:
        return None
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def _lookup(candidate: Mapping, field: str, attribute: str) -> Tuple[bool, Any]:
    """Find a field under its camelCase key or its snake_case attribute name."""
    for key in (field, attribute):
        if key in candidate:
            return True, candidate[key]
    return False, None


def validate_product(candidate: Any) -> Tuple[bool, List[FieldError]]:
    """Check a create payload against required-field and type rules.

    Never raises and never mutates ``candidate``.

    Args:
        candidate: Raw request payload

    Returns:
        Tuple of (valid, errors) with one FieldError per violation

    Example:
        >>> validate_product({"name": "Mug", "price": 0})
        (False, [FieldError(field='price', message='price must be greater than 0')])
    """
    if not isinstance(candidate, Mapping):
        return False, [FieldError("body", "product data must be an object")]

    errors: List[FieldError] = []

    present, name = _lookup(candidate, "name", "name")
    if not present or name is None:
        errors.append(FieldError("name", "name is required"))
    elif not isinstance(name, str) or not clean_line(name):
        errors.append(FieldError("name", "name must be a non-empty string"))

    present, price = _lookup(candidate, "price", "price")
    if not present or price is None:
        errors.append(FieldError("price", "price is required"))
    else:
        amount = parse_amount(price)
        if amount is None:
            errors.append(FieldError("price", "price must be a number"))
        elif amount <= 0:
            errors.append(FieldError("price", "price must be greater than 0"))
        elif amount > settings.max_price:
            errors.append(FieldError("price", f"price must not exceed {settings.max_price}"))

    present, original = _lookup(candidate, "originalPrice", "original_price")
    if present and original is not None:
        amount = parse_amount(original)
        if amount is None:
            errors.append(FieldError("originalPrice", "originalPrice must be a number"))
        elif amount < 0:
            errors.append(FieldError("originalPrice", "originalPrice must not be negative"))
        elif amount > settings.max_price:
            errors.append(FieldError(
                "originalPrice", f"originalPrice must not exceed {settings.max_price}"
            ))

    for field in ("description", "category", "currency"):
        present, value = _lookup(candidate, field, field)
        if present and value is not None and not isinstance(value, str):
            errors.append(FieldError(field, f"{field} must be a string"))

    present, featured = _lookup(candidate, "isFeatured", "is_featured")
    if present and featured is not None and not isinstance(featured, bool):
        errors.append(FieldError("isFeatured", "isFeatured must be a boolean"))

    present, images = _lookup(candidate, "images", "images")
    if present and images is not None and not isinstance(images, list):
        errors.append(FieldError("images", "images must be a list"))

    present, related = _lookup(candidate, "relatedProducts", "related_products")
    if present and related is not None and (
        not isinstance(related, list) or not all(isinstance(item, str) for item in related)
    ):
        errors.append(FieldError("relatedProducts", "relatedProducts must be a list of product IDs"))

    present, reviews = _lookup(candidate, "reviews", "reviews")
    if present and reviews is not None and (
        not isinstance(reviews, list) or not all(
            isinstance(review, Mapping)
            and isinstance(review.get("user"), str)
            and isinstance(review.get("content", ""), str)
            for review in reviews
        )
    ):
        errors.append(FieldError("reviews", "reviews must be a list of {user, content}"))

    return not errors, errors


def field_errors(exc: PydanticValidationError) -> List[FieldError]:
    """Translate pydantic's error list into field errors."""
    result = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())] or ["body"]
        result.append(FieldError(".".join(loc), error.get("msg", "invalid value")))
    return result


def build_product_input(candidate: Mapping) -> ProductInput:
    """Validate a create payload and build the typed input.

    Raises:
        ValidationError: With every field error found
    """
    valid, errors = validate_product(candidate)
    if not valid:
        raise ValidationError(INVALID_PRODUCT_DATA, errors)
    # Explicit nulls on optional fields mean "use the default"
    data = {key: value for key, value in candidate.items() if value is not None}
    try:
        return ProductInput.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(INVALID_PRODUCT_DATA, field_errors(e)) from e


def parse_patch(payload: Any) -> ProductPatch:
    """Parse a partial-update payload.

    Only type checks for the fields present apply; a patch is not held to
    the create rules (a patch may set price to 0).

    Raises:
        ValidationError: If a present field has the wrong type or is null
            where null is not allowed
    """
    if not isinstance(payload, Mapping):
        raise ValidationError(INVALID_PRODUCT_DATA, [FieldError("body", "product data must be an object")])
    try:
        patch = ProductPatch.model_validate(dict(payload))
    except PydanticValidationError as e:
        raise ValidationError(INVALID_PRODUCT_DATA, field_errors(e)) from e

    errors = [
        FieldError(ProductPatch.model_fields[attribute].alias or attribute, "may not be null")
        for attribute in NON_NULLABLE_FIELDS
        if attribute in patch.model_fields_set and getattr(patch, attribute) is None
    ]
    for attribute, field in (("price", "price"), ("original_price", "originalPrice")):
        amount = getattr(patch, attribute)
        if amount is not None and abs(amount) > settings.max_price:
            errors.append(FieldError(field, f"{field} must not exceed {settings.max_price}"))
    if errors:
        raise ValidationError(INVALID_PRODUCT_DATA, errors)
    return patch
