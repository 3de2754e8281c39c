import pytest

from jadoc import (
    IncludedSet,
    IncludeGraphResolver,
    InvalidIncludeParameterError,
    JadocConfig,
    ResourceDescriptor,
    UnsupportedIncludeError,
    has_many,
    has_one,
    parse_include_paths,
    validate_include_paths,
)

from .conftest import Comment, Post, Tag, User


def test_parse_include_paths():
    assert parse_include_paths(["author", "author.comments"]) == {"author": ["comments"]}
    assert parse_include_paths("author,author.comments.post,tags,author.friend") == {
        "author": ["comments.post", "friend"],
        "tags": [],
    }
    assert list(parse_include_paths("tags,author")) == ["tags", "author"]
    assert parse_include_paths("") == {}
    assert parse_include_paths(None) == {}
    assert parse_include_paths(["author.comments", "author.comments"]) == {"author": ["comments"]}


def test_parse_include_paths_custom_separators():
    config = JadocConfig(field_separator=";", path_separator="/")
    assert parse_include_paths("author/comments;tags", config) == {"author": ["comments"], "tags": []}


def test_parse_malformed_include_path():
    with pytest.raises(InvalidIncludeParameterError):
        parse_include_paths("author..comments")


def test_included_set():
    included = IncludedSet(exclude=[("post", "1")])

    assert ("post", "1") in included
    assert not included
    assert included.add(("user", "1"), {"id": "1", "type": "user"})
    assert not included.add(("user", "1"), {"id": "1", "type": "user", "attributes": {}})
    assert not included.add(("post", "1"), {"id": "1", "type": "post"})
    assert included.add(("comment", "2"), {"id": "2", "type": "comment"})

    assert len(included) == 2
    assert included.keys() == [("user", "1"), ("comment", "2")]
    assert included.to_list() == [{"id": "1", "type": "user"}, {"id": "2", "type": "comment"}]


def test_resolve_descriptor_for(registry):
    resolver = IncludeGraphResolver(registry)
    post_descriptor = registry["post"]

    # declared target type
    author = post_descriptor.resolve_relationship("author")
    assert resolver.resolve_descriptor_for(User(1, "a"), author) is registry["user"]
    # runtime type for polymorphic relationships
    taggings = post_descriptor.resolve_relationship("taggings")
    assert resolver.resolve_descriptor_for(Comment(1, "c"), taggings) is registry["comment"]
    assert resolver.resolve_descriptor_for(Post(1, "p"), taggings) is registry["post"]
    assert resolver.resolve_descriptor_for(Tag(1, "t"), taggings) is None
    # declared target type that isn't registered
    assert resolver.resolve_descriptor_for(User(1, "a"), has_one("writer", "writers")) is registry["user"]
    # inferred target type
    assert resolver.resolve_descriptor_for(Tag(1, "t"), has_many("posts")) is None
    registry.register("posts", attributes=["title"])
    assert resolver.resolve_descriptor_for(Tag(1, "t"), has_many("posts")) is registry["posts"]
    # the runtime type wins over the type inferred from the relationship name
    assert resolver.resolve_descriptor_for(Comment(1, "c"), has_many("posts")) is registry["comment"]


def test_expand(registry, post):
    resolver = IncludeGraphResolver(registry)
    included = IncludedSet()

    resolver.expand([post], parse_include_paths("comments.author"), registry["post"], {}, included)

    assert included.keys() == [("comment", "10"), ("user", "1"), ("comment", "11")]
    assert included.to_list()[1] == {"id": "1", "type": "user", "attributes": {"name": "Alice", "email": "alice@example.com"}}


def test_expand_revisits_are_not_walked(registry, post, author):
    # the first path that reaches the author doesn't request its comments: the later request is dropped
    author.comments = [Comment(12, "elsewhere", author=author)]
    resolver = IncludeGraphResolver(registry)
    included = IncludedSet(exclude=[("post", "100")])

    resolver.expand([post], parse_include_paths("author,comments.author.comments"), registry["post"], {}, included)

    assert included.keys() == [("user", "1"), ("comment", "10"), ("comment", "11")]
    assert ("comment", "12") not in included

    included = IncludedSet(exclude=[("post", "100")])
    resolver.expand([post], parse_include_paths("comments.author.comments,author"), registry["post"], {}, included)
    assert included.keys() == [("comment", "10"), ("user", "1"), ("comment", "12"), ("comment", "11")]


def test_validate_include_paths(registry):
    descriptor = registry["post"]

    assert validate_include_paths(descriptor, "author.comments.post,taggings.anything", registry) == [
        "author.comments.post",
        "taggings.anything",
    ]

    with pytest.raises(UnsupportedIncludeError) as exc_info:
        validate_include_paths(descriptor, ["author", "author.posts"], registry)
    assert exc_info.value.include_path == "author.posts"
    assert exc_info.value.supported_includes == ["comments", "friend"]

    with pytest.raises(UnsupportedIncludeError) as exc_info:
        validate_include_paths(ResourceDescriptor("tags"), "posts", registry)
    assert "No includes are supported" in str(exc_info.value)
