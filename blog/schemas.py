from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


def split_tags(raw: str) -> list[str]:
    """Split a comma-separated tag string, trimming whitespace around each element."""
    return [tag.strip() for tag in raw.split(",")]


# --- User ---

class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str
    bio: str | None = None
    profile_picture: str | None = None


class UserResponse(BaseModel):
    id: int
    username: str
    bio: str | None = None
    profile_picture: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AuthorResponse(BaseModel):
    id: int | None
    username: str


# --- Post ---

class PostBase(BaseModel):
    title: str = Field(max_length=300)
    content: str
    tags: list[str] = []
    image: str | None = None


class PostCreate(PostBase):
    author_id: int


class PostUpdate(PostBase):
    """
    Full replacement of the editable fields.  ``image`` is only applied
    when a new upload was supplied; ``None`` keeps the stored reference.
    """


class PostResponse(BaseModel):
    id: int
    title: str
    content: str
    tags: list[str] = []
    image: str | None
    date: str
    author_id: int
    author: AuthorResponse


# --- Views ---

class HomeResponse(BaseModel):
    latest_posts: list[PostResponse]


class BlogResponse(BaseModel):
    blog_posts: list[PostResponse]


class PostView(BaseModel):
    post: PostResponse


class ProfileResponse(BaseModel):
    user: UserResponse
    blog_posts: list[PostResponse]


class SearchResponse(BaseModel):
    query: str
    search_results: list[PostResponse]


class FormError(BaseModel):
    error_message: str
