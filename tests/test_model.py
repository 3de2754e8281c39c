import pytest
from sqlalchemy import Column, ForeignKey, Integer, String, create_engine
from sqlalchemy.orm import Session, declarative_base, relationship

from jadoc import DescriptorRegistry, SchemaError, SerializationEngine, SortEngine, descriptor_from_model, jsonapi_id

Base = declarative_base()


class Author(Base):
    __tablename__ = "authors"
    id = Column(Integer, primary_key=True)
    name = Column(String)
    _secret = Column("secret", String)
    password = Column(String)
    articles = relationship("Article", back_populates="author")


class Article(Base):
    __tablename__ = "articles"
    id = Column(Integer, primary_key=True)
    title = Column(String)
    author_id = Column(Integer, ForeignKey("authors.id"))
    author = relationship("Author", back_populates="articles")


class Translation(Base):
    __tablename__ = "translations"
    article_id = Column(Integer, ForeignKey("articles.id"), primary_key=True)
    language = Column(String, primary_key=True)
    text = Column(String)


@pytest.fixture
def session():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        author = Author(id=1, name="Ann", password="x")
        session.add_all([author, Article(id=1, title="one", author=author), Article(id=2, title="two", author=author)])
        session.commit()
        yield session


def test_descriptor_from_model():
    descriptor = descriptor_from_model(Author, exclude=["password"])

    assert descriptor.type_name == "authors"
    assert descriptor.attribute_names == ["name"]
    articles = descriptor.resolve_relationship("articles")
    assert articles.to_many
    assert articles.target_type == "articles"

    article = descriptor_from_model(Article)
    assert article.attribute_names == ["title"]
    assert not article.resolve_relationship("author").to_many

    polymorphic = descriptor_from_model(Article, type_name="docs", polymorphic=["author"])
    assert polymorphic.type_name == "docs"
    assert polymorphic.resolve_relationship("author").polymorphic

    with pytest.raises(SchemaError):
        descriptor_from_model(object)


def test_jsonapi_id():
    assert jsonapi_id(Translation(article_id=1, language="en")) == "1_en"
    assert jsonapi_id(Translation(article_id=1, language="en"), delimiter="-") == "1-en"
    assert jsonapi_id(Translation()) is None
    assert descriptor_from_model(Translation, delimiter=":").object_id(Translation(article_id=2, language="nl")) == "2:nl"


def test_serialize_mapped_instances(session):
    registry = DescriptorRegistry()
    registry.register(descriptor_from_model(Author, exclude=["password"]))
    registry.register(descriptor_from_model(Article))
    engine = SerializationEngine(registry["articles"], registry=registry)

    articles = session.query(Article).order_by(Article.id).all()
    document = engine.serialize(articles, {}, ["author", "author.articles"])

    assert [item["id"] for item in document["data"]] == ["1", "2"]
    assert document["included"] == [{"id": "1", "type": "authors", "attributes": {"name": "Ann"}}]


def test_serialize_query(session):
    registry = DescriptorRegistry()
    articles = registry.register(descriptor_from_model(Article))
    registry.register(descriptor_from_model(Author, exclude=["password"]))
    query = SortEngine().sort(session.query(Article), "-title", articles)

    document = SerializationEngine(articles, registry=registry).serialize(query, {}, "author")

    assert [(item["id"], item["attributes"]["title"]) for item in document["data"]] == [("2", "two"), ("1", "one")]
    assert [item["type"] for item in document["included"]] == ["authors"]
