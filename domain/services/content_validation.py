from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError,
    create_model,
)
from pydantic.alias_generators import to_camel
from pydantic_core import ErrorDetails, PydanticCustomError

from domain.models import Language
from domain.services.field_rules import ValidationResult, is_email, is_phone, is_valid_url
from domain.services.sanitization import sanitize_string

VALIDATION_MESSAGES: dict[str, dict[str, str]] = {
    "vi": {
        "required": "Trường này là bắt buộc",
        "email": "Email không hợp lệ",
        "url": "URL không hợp lệ",
        "min_length": "Tối thiểu {min_length} ký tự",
        "max_length": "Tối đa {max_length} ký tự",
        "min_value": "Giá trị tối thiểu là {ge}",
        "invalid_format": "Định dạng không hợp lệ",
        "phone": "Số điện thoại không hợp lệ",
        "invalid_date": "Ngày không hợp lệ",
        "unique_order": "Thứ tự phải là duy nhất",
    },
    "en": {
        "required": "This field is required",
        "email": "Invalid email address",
        "url": "Invalid URL",
        "min_length": "Minimum {min_length} characters",
        "max_length": "Maximum {max_length} characters",
        "min_value": "Minimum value is {ge}",
        "invalid_format": "Invalid format",
        "phone": "Invalid phone number",
        "invalid_date": "Invalid date",
        "unique_order": "Order must be unique",
    },
}


def _clean(value: object) -> object:
    return sanitize_string(value) if isinstance(value, str) else value


def _require_url(value: str) -> str:
    if not is_valid_url(value):
        raise PydanticCustomError("url", "Invalid URL")
    return value


def _optional_url(value: str | None) -> str | None:
    if value:
        return _require_url(value)
    return value


def _require_email(value: str) -> str:
    if not is_email(value):
        raise PydanticCustomError("email", "Invalid email address")
    return value


def _require_phone(value: str) -> str:
    if not is_phone(value):
        raise PydanticCustomError("phone", "Invalid phone number")
    return value


CleanText = Annotated[str, BeforeValidator(_clean)]
RequiredText = Annotated[CleanText, StringConstraints(min_length=1)]
HexColor = Annotated[CleanText, StringConstraints(pattern=r"^#[0-9A-Fa-f]{6}$")]
Url = Annotated[CleanText, AfterValidator(_require_url)]
Order = Annotated[int, Field(ge=0)]


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _bilingual_schema(
    name: str,
    *,
    min_length: int = 1,
    max_length: int | None = None,
) -> type[BaseModel]:
    text = Annotated[CleanText, StringConstraints(min_length=min_length, max_length=max_length)]
    return create_model(name, __base__=_Schema, vi=(text, ...), en=(text, ...))


BilingualRequired = _bilingual_schema("BilingualRequired")
BilingualUpTo200 = _bilingual_schema("BilingualUpTo200", max_length=200)
BilingualUpTo300 = _bilingual_schema("BilingualUpTo300", max_length=300)
BilingualUpTo500 = _bilingual_schema("BilingualUpTo500", max_length=500)
BilingualArticle = _bilingual_schema("BilingualArticle", min_length=100)


class ServiceSchema(_Schema):
    id: str | None = None
    title: BilingualRequired  # type: ignore[valid-type]
    description: BilingualUpTo300  # type: ignore[valid-type]
    icon: RequiredText
    color: HexColor
    bg_color: HexColor
    order: Order


class ProjectSchema(_Schema):
    id: str | None = None
    title: BilingualRequired  # type: ignore[valid-type]
    description: BilingualUpTo500  # type: ignore[valid-type]
    image: RequiredText
    images: list[str] = Field(default_factory=list)
    link: Annotated[CleanText | None, AfterValidator(_optional_url)] = None
    technologies: Annotated[list[RequiredText], Field(min_length=1)]
    category: RequiredText
    featured: bool
    order: Order


class BlogPostSchema(_Schema):
    id: str | None = None
    title: BilingualRequired  # type: ignore[valid-type]
    content: BilingualArticle  # type: ignore[valid-type]
    excerpt: BilingualUpTo200  # type: ignore[valid-type]
    thumbnail: RequiredText
    publish_date: datetime
    status: Literal["draft", "published"]
    tags: Annotated[list[RequiredText], Field(min_length=1)]


class ContactInfoSchema(_Schema):
    email: Annotated[CleanText, AfterValidator(_require_email)]
    phone: Annotated[CleanText, AfterValidator(_require_phone)]
    github: Url
    linkedin: Url


def validate_data(
    payload: object,
    schema: type[BaseModel],
    language: Language = "en",
) -> ValidationResult:
    """Validate ``payload`` against ``schema`` and collect every failing field at once.

    Error keys are dotted paths using the stored (camelCase) field names; ``sanitized_data``
    holds the validated model instance on success.
    """
    messages = VALIDATION_MESSAGES[language]
    try:
        model = schema.model_validate(payload)
    except ValidationError as exc:
        errors: dict[str, str] = {}
        field_errors: dict[str, list[str]] = {}
        for error in exc.errors(include_url=False):
            path = ".".join(str(part) for part in error["loc"]) or "general"
            message = _message_for(error, messages)
            field_errors.setdefault(path, []).append(message)
            errors.setdefault(path, message)
        return ValidationResult(is_valid=False, errors=errors, field_errors=field_errors)
    return ValidationResult(is_valid=True, sanitized_data=model)


def _message_for(error: ErrorDetails, messages: Mapping[str, str]) -> str:
    kind = error["type"]
    ctx: dict[str, Any] = dict(error.get("ctx") or {})
    if kind == "missing":
        return messages["required"]
    if kind in {"string_too_short", "too_short"}:
        if ctx.get("min_length", 1) <= 1:
            return messages["required"]
        return messages["min_length"].format(**ctx)
    if kind in {"string_too_long", "too_long"}:
        return messages["max_length"].format(**ctx)
    if kind == "greater_than_equal":
        return messages["min_value"].format(**ctx)
    if kind in {"url", "email", "phone"}:
        return messages[kind]
    if kind.startswith("datetime"):
        return messages["invalid_date"]
    return messages["invalid_format"]


def validate_service(payload: object, language: Language = "en") -> ValidationResult:
    return validate_data(payload, ServiceSchema, language)


def validate_project(payload: object, language: Language = "en") -> ValidationResult:
    return validate_data(payload, ProjectSchema, language)


def validate_blog_post(payload: object, language: Language = "en") -> ValidationResult:
    return validate_data(payload, BlogPostSchema, language)


def validate_contact_info(payload: object, language: Language = "en") -> ValidationResult:
    return validate_data(payload, ContactInfoSchema, language)


def validate_services(items: object, language: Language = "en") -> ValidationResult:
    return _validate_collection(items, ServiceSchema, language, unique_order=True)


def validate_projects(items: object, language: Language = "en") -> ValidationResult:
    return _validate_collection(items, ProjectSchema, language, unique_order=True)


def validate_blog_posts(items: object, language: Language = "en") -> ValidationResult:
    return _validate_collection(items, BlogPostSchema, language, unique_order=False)


def _validate_collection(
    items: object,
    schema: type[BaseModel],
    language: Language,
    *,
    unique_order: bool,
) -> ValidationResult:
    messages = VALIDATION_MESSAGES[language]
    if not isinstance(items, Sequence) or isinstance(items, str):
        return ValidationResult.from_errors({"general": messages["invalid_format"]})

    errors: dict[str, str] = {}
    field_errors: dict[str, list[str]] = {}
    models: list[BaseModel] = []
    seen_orders: set[int] = set()
    for index, item in enumerate(items):
        result = validate_data(item, schema, language)
        for path, item_messages in result.field_errors.items():
            key = f"{index}.{path}"
            field_errors[key] = list(item_messages)
            errors[key] = item_messages[0]
        if result.sanitized_data is not None:
            models.append(result.sanitized_data)

        order = item.get("order") if isinstance(item, Mapping) else None
        if unique_order and isinstance(order, int):
            if order in seen_orders:
                key = f"{index}.order"
                errors.setdefault(key, messages["unique_order"])
                field_errors.setdefault(key, []).append(messages["unique_order"])
            seen_orders.add(order)

    if errors:
        return ValidationResult(is_valid=False, errors=errors, field_errors=field_errors)
    return ValidationResult(is_valid=True, sanitized_data=models)
