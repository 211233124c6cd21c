from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import orjson

from domain.models import DATA_SECTIONS
from domain.ports.storage import KeyValueStore

ARTICLE_VI = (
    "Bài viết này giải thích cách xây dựng một hệ thống quản trị nội dung song ngữ, "
    "bao gồm kiểm tra dữ liệu và sao lưu."
)
ARTICLE_EN = (
    "This article walks through building a bilingual content admin, covering validation, "
    "transformation and backups in detail."
)


def hero_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "greeting": {"vi": "Xin chào", "en": "Hello"},
        "name": "Minh Nguyen",
        "title": {"vi": "Kỹ sư phần mềm", "en": "Software engineer"},
        "subtitle": {"vi": "Xây dựng sản phẩm web", "en": "Building web products"},
        "ctaText": {"vi": "Liên hệ", "en": "Contact me"},
        "ctaLink": "#contact",
    }
    payload.update(overrides)
    return payload


def about_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "description": {
            "vi": "Tôi là kỹ sư phần mềm với nhiều năm kinh nghiệm phát triển web.",
            "en": "I am a software engineer with years of web development experience.",
        },
        "profileImage": "/images/profile.jpg",
        "experience": {"vi": "8 năm kinh nghiệm", "en": "8 years of experience"},
    }
    payload.update(overrides)
    return payload


def service_payload(service_id: str, order: int, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": service_id,
        "title": {"vi": f"Dịch vụ {service_id}", "en": f"Service {service_id}"},
        "description": {"vi": "Mô tả dịch vụ", "en": "Service description"},
        "icon": "code",
        "color": "#3B82F6",
        "bgColor": "#EFF6FF",
        "order": order,
    }
    payload.update(overrides)
    return payload


def project_payload(project_id: str, order: int, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": project_id,
        "title": {"vi": f"Dự án {project_id}", "en": f"Project {project_id}"},
        "description": {"vi": "Mô tả dự án", "en": "Project description"},
        "image": "/images/project.png",
        "images": [],
        "link": "https://example.com/project",
        "technologies": ["Python"],
        "category": "web",
        "featured": False,
        "order": order,
    }
    payload.update(overrides)
    return payload


def blog_post_payload(
    post_id: str,
    publish_date: str,
    status: str = "published",
    **overrides: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": post_id,
        "title": {"vi": f"Bài viết {post_id}", "en": f"Post {post_id}"},
        "content": {"vi": ARTICLE_VI, "en": ARTICLE_EN},
        "excerpt": {"vi": "Tóm tắt", "en": "Summary"},
        "thumbnail": "/images/thumb.png",
        "publishDate": publish_date,
        "status": status,
        "tags": ["python"],
    }
    payload.update(overrides)
    return payload


def contact_info_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "email": "minh@example.com",
        "phone": "+84 912 345 678",
        "github": "https://github.com/minh",
        "linkedin": "https://linkedin.com/in/minh",
    }
    payload.update(overrides)
    return payload


def settings_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "defaultLanguage": "vi",
        "defaultTheme": "dark",
        "colorPalette": ["#3B82F6", "#10B981", "#F59E0B", "#EF4444"],
        "maintenanceMode": False,
    }
    payload.update(overrides)
    return payload


def full_data(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "heroContent": hero_payload(),
        "aboutContent": about_payload(),
        "services": [service_payload("s1", 0), service_payload("s2", 1)],
        "projects": [project_payload("p1", 0)],
        "blogPosts": [blog_post_payload("b1", "2024-01-01T00:00:00Z")],
        "contactMessages": [],
        "contactInfo": contact_info_payload(),
        "systemSettings": settings_payload(),
    }
    data.update(overrides)
    return data


def seed_store(store: KeyValueStore, data: Mapping[str, Any]) -> None:
    for section in DATA_SECTIONS:
        if section.name in data:
            store.set_item(section.storage_key, orjson.dumps(data[section.name]).decode("utf-8"))


def read_section(store: KeyValueStore, storage_key: str) -> Any:
    raw = store.get_item(storage_key)
    return None if raw is None else orjson.loads(raw)
