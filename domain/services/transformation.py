from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from domain.models import (
    LANGUAGES,
    AboutContent,
    BlogPost,
    ContactInfo,
    EntityKind,
    HeroContent,
    Language,
    Project,
    Service,
    SystemSettings,
)
from domain.services.field_rules import IssueReport, is_email

Projection = dict[str, Any]


def transform_hero_content(hero: HeroContent, language: Language) -> Projection:
    return {
        "greeting": hero.greeting.get(language),
        "name": hero.name,
        "title": hero.title.get(language),
        "subtitle": hero.subtitle.get(language),
        "ctaText": hero.cta_text.get(language),
        "ctaLink": hero.cta_link,
    }


def transform_about_content(about: AboutContent, language: Language) -> Projection:
    return {
        "description": about.description.get(language),
        "profileImage": about.profile_image,
        "experience": about.experience.get(language),
    }


def transform_services(services: Iterable[Service], language: Language) -> list[Projection]:
    return [
        {
            "id": service.id,
            "title": service.title.get(language),
            "description": service.description.get(language),
            "icon": service.icon,
            "color": service.color,
            "bgColor": service.bg_color,
            "order": service.order,
        }
        for service in sorted(services, key=lambda item: item.order)
    ]


def transform_projects(projects: Iterable[Project], language: Language) -> list[Projection]:
    return [
        {
            "id": project.id,
            "title": project.title.get(language),
            "description": project.description.get(language),
            "image": project.image,
            "images": list(project.images),
            "link": project.link,
            "technologies": list(project.technologies),
            "category": project.category,
            "featured": project.featured,
            "order": project.order,
        }
        for project in sorted(projects, key=lambda item: item.order)
    ]


def transform_blog_posts(posts: Iterable[BlogPost], language: Language) -> list[Projection]:
    published = [post for post in posts if post.status == "published"]
    published.sort(key=lambda post: _aware(post.publish_date), reverse=True)
    return [
        {
            "id": post.id,
            "title": post.title.get(language),
            "content": post.content.get(language),
            "excerpt": post.excerpt.get(language),
            "thumbnail": post.thumbnail,
            "publishDate": post.publish_date,
            "tags": list(post.tags),
        }
        for post in published
    ]


def transform_contact_info(contact: ContactInfo) -> Projection:
    return {
        "email": contact.email,
        "phone": contact.phone,
        "github": contact.github,
        "linkedin": contact.linkedin,
    }


def transform_system_settings(settings: SystemSettings) -> Projection:
    return {
        "defaultLanguage": settings.default_language,
        "defaultTheme": settings.default_theme,
        "colorPalette": list(settings.color_palette),
        "maintenanceMode": settings.maintenance_mode,
    }


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def generate_dynamic_translations(
    hero: HeroContent,
    about: AboutContent,
    services: Sequence[Service],
    contact: ContactInfo,
) -> dict[str, dict[str, str]]:
    """Flatten bilingual content into one translation table per language.

    Service keys are positional (``services.<index>.title``) and follow the order of
    ``services`` as given, not the display order.
    """
    translations: dict[str, dict[str, str]] = {}
    for language in LANGUAGES:
        table = {
            "hero.greeting": getattr(hero.greeting, language),
            "hero.name": hero.name,
            "hero.title": getattr(hero.title, language),
            "hero.subtitle": getattr(hero.subtitle, language),
            "hero.cta": getattr(hero.cta_text, language),
            "about.description": getattr(about.description, language),
            "about.experience": getattr(about.experience, language),
            "contact.email": contact.email,
            "contact.phone": contact.phone,
        }
        for index, service in enumerate(services):
            table[f"services.{index}.title"] = getattr(service.title, language)
            table[f"services.{index}.description"] = getattr(service.description, language)
        translations[language] = table
    return translations


def _is_text(value: object) -> bool:
    return isinstance(value, str) and bool(value)


def _check_fields(
    data: Mapping[str, Any],
    fields: Sequence[tuple[str, str]],
    prefix: str = "",
) -> list[str]:
    return [
        f"{prefix}{label} is required and must be a string"
        for name, label in fields
        if not _is_text(data.get(name))
    ]


def _check_list(
    data: object,
    label: str,
    item_label: str,
    fields: Sequence[tuple[str, str]],
) -> list[str]:
    if not isinstance(data, list):
        return [f"{label} must be an array"]
    errors: list[str] = []
    for index, item in enumerate(data, start=1):
        if not isinstance(item, Mapping):
            errors.append(f"{item_label} {index}: entry must be an object")
            continue
        errors.extend(_check_fields(item, fields, prefix=f"{item_label} {index}: "))
    return errors


def _check_hero(data: object) -> list[str]:
    if not isinstance(data, Mapping):
        return ["Hero data must be an object"]
    return _check_fields(data, [("name", "Hero name"), ("greeting", "Hero greeting")])


def _check_about(data: object) -> list[str]:
    if not isinstance(data, Mapping):
        return ["About data must be an object"]
    return _check_fields(
        data, [("description", "About description"), ("profileImage", "Profile image")]
    )


def _check_services(data: object) -> list[str]:
    return _check_list(
        data, "Services", "Service", [("title", "title"), ("description", "description")]
    )


def _check_projects(data: object) -> list[str]:
    return _check_list(
        data, "Projects", "Project", [("title", "title"), ("description", "description")]
    )


def _check_blog_posts(data: object) -> list[str]:
    return _check_list(data, "Blog posts", "Blog post", [("title", "title"), ("content", "content")])


def _check_contact_info(data: object) -> list[str]:
    if not isinstance(data, Mapping):
        return ["Contact data must be an object"]
    errors = _check_fields(data, [("email", "Contact email")])
    if _is_text(data.get("email")) and not is_email(data["email"]):
        errors.append("Contact email must be a valid email address")
    return errors


def _check_system_settings(data: object) -> list[str]:
    if not isinstance(data, Mapping):
        return ["System settings must be an object"]
    errors: list[str] = []
    if data.get("defaultLanguage") not in LANGUAGES:
        errors.append("Default language must be one of: vi, en")
    if not isinstance(data.get("colorPalette"), list):
        errors.append("Color palette must be an array")
    return errors


_PROJECTION_CHECKS: Mapping[EntityKind, Callable[[object], list[str]]] = {
    EntityKind.HERO: _check_hero,
    EntityKind.ABOUT: _check_about,
    EntityKind.SERVICES: _check_services,
    EntityKind.PROJECTS: _check_projects,
    EntityKind.BLOG_POSTS: _check_blog_posts,
    EntityKind.CONTACT_INFO: _check_contact_info,
    EntityKind.SYSTEM_SETTINGS: _check_system_settings,
}


def validate_transformed_data(data: object, kind: EntityKind | str) -> IssueReport:
    """Sanity-check a single-language projection, not the stored bilingual entity."""
    try:
        entity_kind = EntityKind(kind)
    except ValueError:
        return IssueReport.from_errors([f"Unknown data type: {kind}"])
    return IssueReport.from_errors(_PROJECTION_CHECKS[entity_kind](data))


def create_preview_snapshot(
    *,
    hero: HeroContent | None = None,
    about: AboutContent | None = None,
    services: Sequence[Service] | None = None,
    projects: Sequence[Project] | None = None,
    blog_posts: Sequence[BlogPost] | None = None,
    contact: ContactInfo | None = None,
    settings: SystemSettings | None = None,
) -> dict[str, Any]:
    snapshot: dict[str, Any] = {}
    if hero is not None:
        snapshot["heroContent"] = hero.model_copy(deep=True)
    if about is not None:
        snapshot["aboutContent"] = about.model_copy(deep=True)
    if services is not None:
        snapshot["services"] = list(services)
    if projects is not None:
        snapshot["projects"] = list(projects)
    if blog_posts is not None:
        snapshot["blogPosts"] = list(blog_posts)
    if contact is not None:
        snapshot["contactInfo"] = contact.model_copy(deep=True)
    if settings is not None:
        snapshot["systemSettings"] = settings.model_copy(deep=True)
    return snapshot


def merge_preview_data(current: Mapping[str, Any], preview: Mapping[str, Any]) -> dict[str, Any]:
    return {**current, **preview}
