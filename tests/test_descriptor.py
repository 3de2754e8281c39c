import pytest

from jadoc import (
    ByAliasedColumn,
    ByCustomTransform,
    ByDeclaredField,
    DescriptorRegistry,
    Direct,
    Override,
    ResourceDescriptor,
    SchemaError,
    Transform,
    has_many,
    has_one,
)
from jadoc.descriptor import infer_relationship_type, infer_type_name

from .conftest import Post, User


def test_inherit_is_a_snapshot():
    parent = ResourceDescriptor("vehicles", attributes=["name", "brand"], relationships=[has_one("owner", "users")], sortable_fields={"year": None})
    child = parent.inherit(type_name="cars")

    assert list(child.attributes) == ["name", "brand"]
    assert child.resolve_relationship("owner") == parent.resolve_relationship("owner")

    parent.add_attribute("year")
    child.add_attribute("doors")
    child.add_relationship(has_many("wheels"))
    child.add_sortable("doors")

    assert list(parent.attributes) == ["name", "brand", "year"]
    assert list(child.attributes) == ["name", "brand", "doors"]
    assert parent.resolve_relationship("wheels") is None
    assert not parent.is_sortable("doors")
    assert child.type_name == "cars"
    assert parent.type_name == "vehicles"


def test_type_name_inference():
    assert infer_type_name("Post") == "posts"
    assert infer_type_name("BlogPost") == "blog_posts"
    assert infer_type_name("Category") == "categories"
    assert ResourceDescriptor(model=User).type_name == "users"
    assert ResourceDescriptor("people", model=User).type_name == "people"
    assert infer_relationship_type("author") == "authors"
    assert infer_relationship_type("tags") == "tags"

    with pytest.raises(SchemaError):
        ResourceDescriptor().type_name


def test_field_precedence():
    def shout(view):
        return view.object.title.upper()

    descriptor = ResourceDescriptor("posts", attributes=[Override("title", shout)])
    descriptor.add_attribute("title")
    descriptor.add_attribute(Transform("title", lambda obj, context: obj.title.lower()))
    assert descriptor.attributes["title"] == Override("title", shout)

    descriptor.add_attribute("content")
    descriptor.add_attribute(Transform("content", lambda obj, context: "transformed"))
    assert isinstance(descriptor.attributes["content"], Transform)

    view = descriptor.view(Post(1, "Hello", "World"))
    assert view.attribute_values() == {"title": "HELLO", "content": "transformed"}


def test_reserved_attribute_names():
    with pytest.raises(SchemaError):
        ResourceDescriptor("posts", attributes=["id"])
    with pytest.raises(SchemaError):
        ResourceDescriptor("posts", attributes=["type"])


def test_sortable_fields():
    descriptor = ResourceDescriptor(
        "posts",
        attributes=["title", ("created", "created_at")],
        sortable_fields={"popularity": lambda collection, direction: collection, "rank": "position", "title": None},
    )

    assert descriptor.is_sortable("title")
    assert descriptor.is_sortable("created")
    assert descriptor.is_sortable("popularity")
    assert not descriptor.is_sortable("content")
    assert descriptor.sort_strategy("title") == ByDeclaredField()
    assert descriptor.sort_strategy("created") == ByAliasedColumn("created_at")
    assert descriptor.sort_strategy("rank") == ByAliasedColumn("position")
    assert isinstance(descriptor.sort_strategy("popularity"), ByCustomTransform)
    assert descriptor.sort_strategy("content") is None
    assert descriptor.sortable_field_names() == ["title", "created", "popularity", "rank"]


def test_register_is_idempotent():
    registry = DescriptorRegistry()
    first = registry.register("posts", attributes=["title"], relationships=[has_one("author", "users")], model=Post)
    second = registry.register("posts", attributes=["title"], relationships=[has_one("author", "users")], model=Post)

    assert second is first
    assert len(registry) == 1
    assert registry.get("posts") is first
    assert registry.for_object(Post(1, "x")) is first

    with pytest.raises(SchemaError):
        registry.register("posts", attributes=["title", "content"], model=Post)


def test_registered_descriptors_are_read_only():
    registry = DescriptorRegistry()
    posts = registry.register("posts", attributes=["title"], model=Post)

    with pytest.raises(SchemaError):
        posts.add_attribute("content")
    with pytest.raises(SchemaError):
        posts.add_relationship(has_one("author", "users"))
    with pytest.raises(SchemaError):
        posts.add_sortable("rank")
    with pytest.raises(SchemaError):
        posts.meta = lambda view: {}
    with pytest.raises(SchemaError):
        posts._type_name = "articles"
    with pytest.raises(TypeError):
        posts.attributes["content"] = Direct("content")
    assert posts.attribute_names == ["title"]
    assert registry.get("posts") is posts

    # a child descriptor can still be extended
    child = posts.inherit(type_name="articles")
    child.add_attribute("content")
    assert child.attribute_names == ["title", "content"]

    registry.unregister("posts")
    posts.add_attribute("content")
    assert posts.attribute_names == ["title", "content"]


def test_registry_lookups():
    registry = DescriptorRegistry()
    users = registry.register(ResourceDescriptor(attributes=["name"], model=User))

    assert "users" in registry
    assert registry.for_model("User") is users
    assert registry.for_object(User(1, "x")) is users
    assert registry.for_object(Post(1, "x")) is None
    assert registry.get("posts") is None
    with pytest.raises(SchemaError):
        registry["posts"]

    registry.unregister("users")
    assert registry.for_object(User(1, "x")) is None


def test_registry_infers_runtime_type():
    registry = DescriptorRegistry()
    posts = registry.register(ResourceDescriptor("posts", attributes=["title"]))
    assert registry.for_object(Post(1, "x")) is posts


def test_object_id():
    descriptor = ResourceDescriptor("posts", id_attr="slug")
    assert descriptor.object_id({"slug": "hello"}) == "hello"
    assert descriptor.object_id(Post(1, "x")) is None

    descriptor = ResourceDescriptor("posts", id_func=lambda obj: f"p{obj.id}")
    assert descriptor.object_id(Post(1, "x")) == "p1"
    assert ResourceDescriptor("posts").object_id(Post(42, "x")) == "42"


def test_attribute_names_contract():
    descriptor = ResourceDescriptor("posts", attributes=["title", Direct("body", "content")], meta_attributes=["created_at"])
    assert descriptor.attribute_names == ["title", "body"]
    assert descriptor.meta_attribute_names == ["created_at"]
