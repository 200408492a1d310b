"""
Base class for persisted models.

Subclass BaseModel, declare fields with defaults and use the class methods to
query the model's collection:

    class BlogPost(BaseModel):
        title: str = ""
        status: str = "draft"
        author_id: str | None = None

    post = await BlogPost.create({"title": "My First Blog Post!"})
    published = await BlogPost.where("status", "published").order_by("title").get()

Every class method starts from a fresh QueryBuilder bound to the calling
subclass, so `BlogPost.where(...)` yields BlogPost instances and reads the
`blog-posts` collection.
"""

from typing import Any, ClassVar, Optional, TypeVar

from pydantic import BaseModel as PydanticModel
from pydantic import ConfigDict

from .constants import ID_FIELD
from .database.connection import ConnectionHandler
from .descriptor import describe
from .normalization import now_millis
from .query_builder import QueryBuilder

M = TypeVar("M", bound="BaseModel")
R = TypeVar("R", bound="BaseModel")


class BaseModel(PydanticModel):
    """
    ActiveRecord-style model.

    Attributes:
        id: Public identifier, assigned on first persistence
        created_at: Creation time in epoch milliseconds
        updated_at: Time of the last update in epoch milliseconds, None until
            the model is saved a second time
    """

    model_config = ConfigDict(extra="allow")

    connection: ClassVar[Optional[ConnectionHandler]] = None
    """Connection handler for this model; None uses the shared handler."""

    id: str = ""
    created_at: int = 0
    updated_at: Optional[int] = None

    @classmethod
    def query(cls: type[M]) -> QueryBuilder[M]:
        """Returns a fresh QueryBuilder bound to this model class."""
        return QueryBuilder(cls, cls.connection)

    # ------------------------------------------------------------------
    # Query builders
    # ------------------------------------------------------------------

    @classmethod
    def where(cls: type[M], key_or_query: Any, *args: Any) -> QueryBuilder[M]:
        """
        Returns a QueryBuilder constrained by `where`.

        Example:
            posts = await BlogPost.where("status", "published").get()
            long_reads = await BlogPost.where("words", ">", 2000).get()
        """
        return cls.query().where(key_or_query, *args)

    @classmethod
    def where_in(cls: type[M], key: str, values: list[Any]) -> QueryBuilder[M]:
        """
        Returns models where `key` is one of `values`.

        Example:
            comments = await Comment.where_in("post_id", [1, 2, 3]).get()
        """
        return cls.query().where_in(key, values)

    @classmethod
    def where_not_in(cls: type[M], key: str, values: list[Any]) -> QueryBuilder[M]:
        """Returns models where `key` is none of `values`."""
        return cls.query().where_not_in(key, values)

    @classmethod
    def order_by(cls: type[M], key: str, direction: str = "asc") -> QueryBuilder[M]:
        """
        Specifies the order the models are returned in.

        Example:
            posts = await BlogPost.order_by("published_at", "desc").get()
        """
        return cls.query().order_by(key, direction)

    @classmethod
    def limit(cls: type[M], length: int) -> QueryBuilder[M]:
        return cls.query().limit(length)

    @classmethod
    def skip(cls: type[M], length: int) -> QueryBuilder[M]:
        return cls.query().skip(length)

    @classmethod
    def search(cls: type[M], text: str, case_sensitive: bool = False) -> QueryBuilder[M]:
        """Full-text search; the collection needs a text index."""
        return cls.query().search(text, case_sensitive)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @classmethod
    async def all(cls: type[M]) -> list[M]:
        """
        Returns all models.

        Example:
            posts = await BlogPost.all()
        """
        return await cls.query().get()

    @classmethod
    async def find(cls: type[M], identifier: Any) -> Optional[M]:
        """
        Returns the model with the given id, or None.

        Example:
            post = await BlogPost.find("5f5a41cc3eb990709eafda43")
        """
        return await cls.query().find(identifier)

    @classmethod
    async def find_by(cls: type[M], key: str, value: Any) -> Optional[M]:
        """
        Returns the first model where `key` equals `value`, or None.

        Example:
            user = await User.find_by("email", "john.smith@company.com")
        """
        return await cls.query().find_one({key: value})

    @classmethod
    async def count(cls) -> int:
        return await cls.query().count()

    @classmethod
    async def pluck(cls, *keys: str) -> list[Any]:
        """
        Returns the values of `keys` for every model.

        Example:
            titles = await BlogPost.pluck("title")
            rows = await BlogPost.pluck("title", "status")
        """
        return await cls.query().pluck(*keys)

    @classmethod
    async def aggregate(cls, stages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Direct access to MongoDB's aggregation pipeline.

        Example:
            results = await User.aggregate([
                {"$group": {"_id": "$department", "count": {"$sum": 1}}}
            ])
        """
        return await cls.query().aggregate(stages)

    @classmethod
    async def sum(cls, key: str) -> float:
        return await cls.query().sum(key)

    @classmethod
    async def max(cls, key: str) -> float:
        return await cls.query().max(key)

    @classmethod
    async def min(cls, key: str) -> float:
        return await cls.query().min(key)

    @classmethod
    async def average(cls, key: str) -> float:
        return await cls.query().average(key)

    @classmethod
    async def percentile(cls, key: str, n: float) -> float:
        """
        Returns the nth percentile of the values for `key`.

        Example:
            median = await ResponseTime.percentile("value", 50)
            p95 = await ResponseTime.percentile("value", 95)
        """
        return await cls.query().percentile(key, n)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @classmethod
    async def create(cls: type[M], attributes: dict[str, Any] | None = None, **kwargs: Any) -> M:
        """
        Creates a model from the declared defaults merged with `attributes`.

        The id is generated unless one is given. The stored document is read
        back and returned.

        Example:
            post = await BlogPost.create({"title": "My First Blog Post!"})
            post = await BlogPost.create(title="My First Blog Post!")
        """
        return await cls.query().create_model({**(attributes or {}), **kwargs})

    @classmethod
    async def first_or_create(
        cls: type[M], filter: dict[str, Any], attributes: dict[str, Any] | None = None
    ) -> M:
        """
        Returns the first model matching `filter`, or creates one.

        Example:
            # Retrieve flight by name or create it if it doesn't exist...
            flight = await Flight.first_or_create({"name": "London to Paris"})

            # ...or create it with extra attributes
            flight = await Flight.first_or_create(
                {"name": "London to Paris"}, {"delayed": 1, "arrival_time": "11:30"}
            )
        """
        return await cls.query().first_or_create(filter, attributes)

    async def save(self) -> None:
        """
        Persists the current state of the model.

        A model without an id gets `created_at` set and receives the id the
        store assigned; a model with an id gets `updated_at` refreshed.

        Example:
            post = BlogPost(title="My Second Blog Post!")
            await post.save()
        """
        if self.id:
            self.updated_at = now_millis()
        else:
            self.created_at = now_millis()

        identifier = await self.query().save(self.model_dump())

        if not self.id:
            self.id = identifier

    async def delete(self) -> int:
        """
        Deletes this model from the database.

        Returns:
            The number of documents deleted (0 or 1)
        """
        return await self.query().where_id(self.id).limit(1).delete()

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def has_many(
        self,
        model: type[R],
        foreign_key: str | None = None,
        local_key: str | None = None,
    ) -> QueryBuilder[R]:
        """
        Returns a QueryBuilder for the `model` rows pointing at this one.

        The relation is not cached; every call queries again.

        Args:
            model: The related model class
            foreign_key: Field on `model` holding the reference (defaults to
                this class name as a foreign key, `Author` -> `author_id`)
            local_key: Field on this model being referenced (defaults to `id`)

        Example:
            books = await author.has_many(Book).get()
        """
        foreign_key = foreign_key or describe(type(self)).foreign_key
        local_key = local_key or ID_FIELD

        return model.query().where(foreign_key, getattr(self, local_key))
