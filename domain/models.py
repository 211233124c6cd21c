from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CURRENT_SCHEMA_VERSION = "1.0.0"
SUPPORTED_VERSIONS: tuple[str, ...] = (CURRENT_SCHEMA_VERSION,)

Language = Literal["vi", "en"]
Theme = Literal["light", "dark"]
PostStatus = Literal["draft", "published"]

DEFAULT_LANGUAGE: Language = "vi"
LANGUAGES: tuple[Language, ...] = ("vi", "en")
THEMES: tuple[Theme, ...] = ("light", "dark")


class AdminModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class BilingualText(AdminModel):
    vi: str = ""
    en: str = ""

    def get(self, language: str) -> str:
        value = self.en if language == "en" else self.vi
        return value or self.vi


class HeroContent(AdminModel):
    greeting: BilingualText = Field(default_factory=BilingualText)
    name: str = ""
    title: BilingualText = Field(default_factory=BilingualText)
    subtitle: BilingualText = Field(default_factory=BilingualText)
    cta_text: BilingualText = Field(default_factory=BilingualText)
    cta_link: str = ""


class AboutContent(AdminModel):
    description: BilingualText = Field(default_factory=BilingualText)
    profile_image: str = ""
    experience: BilingualText = Field(default_factory=BilingualText)


class Service(AdminModel):
    id: str
    title: BilingualText = Field(default_factory=BilingualText)
    description: BilingualText = Field(default_factory=BilingualText)
    icon: str = ""
    color: str = ""
    bg_color: str = ""
    order: int = 0


class Project(AdminModel):
    id: str
    title: BilingualText = Field(default_factory=BilingualText)
    description: BilingualText = Field(default_factory=BilingualText)
    image: str = ""
    images: list[str] = Field(default_factory=list)
    link: str | None = None
    technologies: list[str] = Field(default_factory=list)
    category: str = ""
    featured: bool = False
    order: int = 0


class BlogPost(AdminModel):
    id: str
    title: BilingualText = Field(default_factory=BilingualText)
    content: BilingualText = Field(default_factory=BilingualText)
    excerpt: BilingualText = Field(default_factory=BilingualText)
    thumbnail: str = ""
    publish_date: datetime
    status: PostStatus = "draft"
    tags: list[str] = Field(default_factory=list)


class ContactMessage(AdminModel):
    id: str
    name: str = ""
    email: str = ""
    message: str = ""
    timestamp: datetime
    read: bool = False


class ContactInfo(AdminModel):
    email: str = ""
    phone: str = ""
    github: str = ""
    linkedin: str = ""


class SystemSettings(AdminModel):
    default_language: Language = DEFAULT_LANGUAGE
    default_theme: Theme = "dark"
    color_palette: list[str] = Field(default_factory=list)
    maintenance_mode: bool = False


class AdminData(AdminModel):
    """The `data` block of an export document, one field per stored section."""

    hero_content: HeroContent = Field(default_factory=HeroContent)
    about_content: AboutContent = Field(default_factory=AboutContent)
    services: list[Service] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    blog_posts: list[BlogPost] = Field(default_factory=list)
    contact_messages: list[ContactMessage] = Field(default_factory=list)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    system_settings: SystemSettings = Field(default_factory=SystemSettings)


class ExportMetadata(AdminModel):
    total_items: int = 0
    data_size: int = 0
    checksum: str = ""


class AdminDataExport(AdminModel):
    version: str = CURRENT_SCHEMA_VERSION
    export_date: str
    export_id: str
    data: dict[str, Any]
    metadata: ExportMetadata = Field(default_factory=ExportMetadata)


class ImageMetadata(AdminModel):
    width: int
    height: int
    type: str
    original_size: int | None = None
    compressed_size: int | None = None
    compression_ratio: float | None = None


class StoredImage(AdminModel):
    id: str
    category: str
    filename: str
    data: str
    thumbnail: str | None = None
    metadata: ImageMetadata
    upload_date: str


class EntityKind(str, Enum):
    HERO = "hero"
    ABOUT = "about"
    SERVICES = "services"
    PROJECTS = "projects"
    BLOG_POSTS = "blogPosts"
    CONTACT_INFO = "contactInfo"
    SYSTEM_SETTINGS = "systemSettings"


class StorageKey:
    HERO_CONTENT = "admin_hero_content"
    ABOUT_CONTENT = "admin_about_content"
    SERVICES = "admin_services"
    PROJECTS = "admin_projects"
    BLOG_POSTS = "admin_blog_posts"
    CONTACT_MESSAGES = "admin_contact_messages"
    CONTACT_INFO = "admin_contact_info"
    SYSTEM_SETTINGS = "admin_system_settings"
    UPLOADED_IMAGES = "admin_uploaded_images"
    ERROR_REPORTS = "admin_error_reports"


@dataclass(frozen=True)
class DataSection:
    name: str
    storage_key: str
    is_collection: bool

    def empty(self) -> Any:
        return [] if self.is_collection else {}


DATA_SECTIONS: tuple[DataSection, ...] = (
    DataSection("heroContent", StorageKey.HERO_CONTENT, is_collection=False),
    DataSection("aboutContent", StorageKey.ABOUT_CONTENT, is_collection=False),
    DataSection("services", StorageKey.SERVICES, is_collection=True),
    DataSection("projects", StorageKey.PROJECTS, is_collection=True),
    DataSection("blogPosts", StorageKey.BLOG_POSTS, is_collection=True),
    DataSection("contactMessages", StorageKey.CONTACT_MESSAGES, is_collection=True),
    DataSection("contactInfo", StorageKey.CONTACT_INFO, is_collection=False),
    DataSection("systemSettings", StorageKey.SYSTEM_SETTINGS, is_collection=False),
)
