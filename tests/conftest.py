import datetime
from typing import Optional

import pytest

from jadoc import DescriptorRegistry, ResourceDescriptor, has_many, has_one


class User:
    def __init__(self, id: int, name: str, email: str = "", comments: Optional[list] = None, friend: "Optional[User]" = None) -> None:
        self.id = id
        self.name = name
        self.email = email
        self.comments = comments if comments is not None else []
        self.friend = friend


class Post:
    def __init__(self, id: int, title: str, content: str = "", author: Optional[User] = None, comments: Optional[list] = None, taggings: Optional[list] = None, created_at: Optional[datetime.datetime] = None) -> None:
        self.id = id
        self.title = title
        self.content = content
        self.author = author
        self.comments = comments if comments is not None else []
        self.taggings = taggings if taggings is not None else []
        self.created_at = created_at


class Comment:
    def __init__(self, id: int, body: str, author: Optional[User] = None, post: Optional[Post] = None) -> None:
        self.id = id
        self.body = body
        self.author = author
        self.post = post


class Tag:
    def __init__(self, id: int, name: str) -> None:
        self.id = id
        self.name = name


@pytest.fixture
def registry() -> DescriptorRegistry:
    registry = DescriptorRegistry()
    registry.register(
        ResourceDescriptor(
            "user",
            attributes=["name", "email"],
            relationships=[has_many("comments", "comment"), has_one("friend", "user")],
            model=User,
        )
    )
    registry.register(
        ResourceDescriptor(
            "post",
            attributes=["title", "content"],
            meta_attributes=["created_at"],
            relationships=[has_one("author", "user"), has_many("comments", "comment"), has_many("taggings", polymorphic=True)],
            model=Post,
        )
    )
    registry.register(
        ResourceDescriptor(
            "comment",
            attributes=["body"],
            relationships=[has_one("author", "user"), has_one("post", "post")],
            model=Comment,
        )
    )
    return registry


@pytest.fixture
def author() -> User:
    return User(1, "Alice", "alice@example.com")


@pytest.fixture
def post(author: User) -> Post:
    comments = [Comment(10, "first", author=author), Comment(11, "second", author=author)]
    author.comments = list(comments)
    post = Post(100, "Hello", "World", author=author, comments=comments, created_at=datetime.datetime(2024, 5, 1, 12, 30))
    for comment in comments:
        comment.post = post
    return post
