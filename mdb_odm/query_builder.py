"""
Fluent query builder.

A QueryBuilder is bound to one model class. Builder methods (`where`,
`where_in`, `order_by`, `limit`, ...) accumulate a query descriptor and
return the builder itself for chaining; terminal coroutines (`get`, `first`,
`count`, `delete`, `pluck`, the numeric aggregates, ...) open or reuse the
pooled connection, run exactly one store round trip against the model's
collection and map the returned documents back into model instances.

Example:
    books = await (
        QueryBuilder(Book)
        .where("pages", ">", 300)
        .order_by("title")
        .limit(10)
        .get()
    )

Note on `where`: constraints are merged per field with last-write-wins
semantics. `where("pages", ">", 300).where("pages", "<", 500)` leaves only
`{"pages": {"$lt": 500}}`; pass a range explicitly with
`where({"pages": ...})` built from trusted values if both bounds are needed.
"""

from numbers import Real
from typing import Any, Generic, TypeVar

import numpy as np

from .constants import (ASCENDING, COMPARISON_OPERATORS, DESCENDING, ID_FIELD,
                        INTERNAL_ID_FIELD)
from .database.connection import ConnectionHandler, connection_handler
from .database.sanitize import sanitize
from .descriptor import ModelDescriptor, describe
from .exceptions import (AggregateTypeError, InvalidOperatorError,
                         PersistenceError)
from .normalization import normalize_attributes
from .observability import get_logger as get_contextual_logger
from .observability import query_context, timed_operation
from .utils.mongo import id_candidates, id_filter, stringify_id

contextual_logger = get_contextual_logger(__name__)

T = TypeVar("T")

Query = dict[str, Any]


def _field_name(key: str) -> str:
    return INTERNAL_ID_FIELD if key == ID_FIELD else key


def _constraints(query: Query) -> Query:
    """Translate `id` equality into a filter matching ObjectId and string ids."""
    constraints: Query = {}
    for key, value in query.items():
        if key == ID_FIELD:
            constraints.update(id_filter(value))
        else:
            constraints[key] = value
    return constraints


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


class QueryBuilder(Generic[T]):
    """
    Accumulates filter, sort, limit and offset state for one model class.

    Builders are cheap and not meant to be shared between logical queries;
    every call chain should start from a fresh one (`Model.query()`).
    """

    def __init__(self, model: type[T], connection: ConnectionHandler | None = None):
        """
        Args:
            model: Model class results are mapped into
            connection: Connection handler to use (defaults to the shared
                process-wide handler)
        """
        self._descriptor: ModelDescriptor = describe(model)
        self._connection = connection or connection_handler

        self._query: Query = {}
        self._limit: int | None = None
        self._offset: int | None = None
        self._order: dict[str, int] | None = None

    @property
    def model(self) -> type[T]:
        return self._descriptor.model

    @property
    def collection_name(self) -> str:
        return self._descriptor.collection_name

    @property
    def query(self) -> Query:
        """A copy of the accumulated filter."""
        return dict(self._query)

    @property
    def sort_order(self) -> list[tuple[str, int]]:
        return list(self._order.items()) if self._order else []

    # ------------------------------------------------------------------
    # Builder methods
    # ------------------------------------------------------------------

    def where(self, key_or_query: str | Query, *args: Any) -> "QueryBuilder[T]":
        """
        Adds a constraint to the current query.

        Accepted forms:
            where({"status": "published"})
            where("status", "published")
            where("pages", ">=", 300)

        Values are sanitized, so operator keys coming from untrusted input
        are dropped. Supported operators are `=`, `!=`, `<>`, `>`, `>=`,
        `<` and `<=`; `=` is plain equality.
        """
        if isinstance(key_or_query, dict):
            if args:
                raise TypeError("where() takes no extra arguments when given a query dict")
            constraint = _constraints(sanitize(key_or_query))
        elif len(args) == 1:
            constraint = _constraints({key_or_query: sanitize(args[0])})
        elif len(args) == 2:
            operator, value = args
            constraint = {_field_name(key_or_query): self._compare(operator, sanitize(value))}
        else:
            raise TypeError(
                f"where() takes a query dict, (key, value) or (key, operator, value), "
                f"got {len(args) + 1} arguments"
            )

        self._query.update(constraint)
        return self

    def where_id(self, identifier: Any) -> "QueryBuilder[T]":
        """Constrain the query to one identifier, stored as ObjectId or string."""
        self._query.update(id_filter(sanitize(identifier)))
        return self

    def where_in(self, key: str, values: list[Any]) -> "QueryBuilder[T]":
        """
        Returns the models with `key` in `values`.

        An empty list matches nothing.
        """
        self._query[_field_name(key)] = {"$in": self._membership_values(key, values)}
        return self

    def where_not_in(self, key: str, values: list[Any]) -> "QueryBuilder[T]":
        """
        Returns the models with `key` not in `values`.

        An empty list adds no constraint at all, since nothing is excluded.
        """
        values = list(values)
        if not values:
            return self

        self._query[_field_name(key)] = {"$nin": self._membership_values(key, values)}
        return self

    def order_by(self, key: str, direction: str = "asc") -> "QueryBuilder[T]":
        """
        Sorts the models by `key`.

        Repeated calls build a compound sort key in call order.

        Args:
            key: The field to sort by
            direction: "asc" (default) or "desc"
        """
        direction = direction.lower()
        if direction not in ("asc", "desc"):
            raise ValueError(f"direction must be 'asc' or 'desc', got {direction!r}")

        if self._order is None:
            self._order = {}
        self._order[_field_name(key)] = ASCENDING if direction == "asc" else DESCENDING
        return self

    def limit(self, length: int) -> "QueryBuilder[T]":
        """Limits the number of models returned."""
        self._limit = length
        return self

    def skip(self, length: int) -> "QueryBuilder[T]":
        """Skips the first `length` models. Useful for pagination."""
        self._offset = length
        return self

    def search(self, text: str, case_sensitive: bool = False) -> "QueryBuilder[T]":
        """
        Searches the collection's text index for `text`.

        The collection needs a text index, see
        https://www.mongodb.com/docs/manual/core/indexes/index-types/index-text/
        """
        self._query["$text"] = {"$search": text, "$caseSensitive": case_sensitive}
        return self

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self) -> list[T]:
        """Returns the models matching the query, or an empty list."""
        return await self._execute()

    async def first(self) -> T | None:
        """Returns the first model matching the query, or None."""
        self._limit = 1

        models = await self._execute()
        return models[0] if models else None

    async def find(self, identifier: Any) -> T | None:
        """
        Returns the model with the given id, or None.

        Matches both documents whose `_id` is a native ObjectId and documents
        whose `_id` is the raw string, so callers don't need to know how the
        record was created.
        """
        query = {**self._query, **id_filter(sanitize(identifier))}

        collection = await self._collection()
        with self._timed("find_one"):
            document = await collection.find_one(query)

        return self._descriptor.build(document) if document else None

    async def find_one(self, filter: Query) -> T | None:
        """Returns the first model matching the sanitized `filter`, or None."""
        query = _constraints(sanitize(filter))

        collection = await self._collection()
        with self._timed("find_one"):
            document = await collection.find_one(query)

        return self._descriptor.build(document) if document else None

    async def count(self) -> int:
        """
        Returns the number of documents matching the query.

        Example:
            paying = await Customer.where("has_paid", True).count()
        """
        collection = await self._collection()
        with self._timed("count_documents"):
            return await collection.count_documents(self._query)

    async def pluck(self, *keys: str) -> list[Any]:
        """
        Retrieves the values of `keys` for every matching model.

        Only the requested fields are read from the store. A single key
        returns a flat list of values, several keys return one dict per model
        with the keys in the order they were given.

        Example:
            await Post.where("category_id", 2).pluck("id")
            # => ['5f3568f2a0cdd1c9ba411c43', ...]
        """
        if not keys:
            return []

        projection = {_field_name(key): 1 for key in keys}
        documents = await self._find(projection)

        if len(keys) == 1:
            key = keys[0]
            return [self._value(document, key) for document in documents]

        return [{key: self._value(document, key) for key in keys} for document in documents]

    async def aggregate(self, stages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Direct access to MongoDB's aggregation pipeline.

        The stages are passed through untouched; the accumulated query is not
        applied.
        """
        collection = await self._collection()
        with self._timed("aggregate"):
            cursor = collection.aggregate(stages)
            return await cursor.to_list(length=None)

    # ------------------------------------------------------------------
    # Numeric aggregates
    # ------------------------------------------------------------------

    async def sum(self, key: str) -> float:
        """Returns the sum of the values for `key` (0 when nothing matches)."""
        values = await self._numeric_values(key)
        return sum(values)

    async def max(self, key: str) -> float:
        """Returns the largest value for `key` (0 when nothing matches)."""
        values = await self._numeric_values(key)
        return max(values) if values else 0

    async def min(self, key: str) -> float:
        """Returns the smallest value for `key` (0 when nothing matches)."""
        values = await self._numeric_values(key)
        return min(values) if values else 0

    async def average(self, key: str) -> float:
        """Returns the mean of the values for `key` (0 when nothing matches)."""
        values = await self._numeric_values(key)
        if not values:
            return 0
        return sum(values) / len(values)

    async def percentile(self, key: str, n: float) -> float:
        """
        Returns the nth percentile (0-100) of the values for `key`.

        Uses the nearest-rank definition: the smallest value such that at
        least n percent of the values are less than or equal to it.
        Returns 0 when nothing matches.
        """
        values = await self._numeric_values(key)
        if not values:
            return 0
        return float(np.percentile(values, n, method="inverted_cdf"))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, attributes: dict[str, Any]) -> Any:
        """
        Inserts a new document built from `attributes`.

        Returns:
            The id of the inserted document
        """
        document = normalize_attributes(attributes)

        collection = await self._collection()
        with self._timed("insert_one"):
            result = await collection.insert_one(document)

        return result.inserted_id

    async def create_model(self, attributes: dict[str, Any]) -> T:
        """
        Creates a document from the model defaults merged with `attributes`
        and returns it read back from the store.

        Raises:
            PersistenceError: If the inserted document cannot be read back
        """
        identifier = await self.create({**self._descriptor.defaults(), **attributes})

        model = await self.find_one({INTERNAL_ID_FIELD: identifier})
        if model is None:
            raise PersistenceError(
                "Failed to create model.",
                collection_name=self.collection_name,
                document_id=identifier,
            )
        return model

    async def first_or_create(
        self, filter: dict[str, Any], attributes: dict[str, Any] | None = None
    ) -> T:
        """
        Returns the first model matching `filter`, or creates one.

        An existing model is returned as is; `attributes` only apply to a
        newly created model, on top of `filter`.
        """
        existing = await self.find_one(filter)
        if existing is not None:
            return existing

        return await self.create_model({**filter, **(attributes or {})})

    async def save(self, attributes: dict[str, Any]) -> Any:
        """
        Upserts `attributes` keyed by their identifier.

        This is the persistence primitive for both inserting a model with a
        known id and updating an existing one.

        A document stored under the ObjectId form of the identifier is
        updated in place.

        Returns:
            The identifier of the saved document
        """
        document = normalize_attributes(sanitize(attributes))
        identifier = document.pop(INTERNAL_ID_FIELD)

        collection = await self._collection()

        stored_id = identifier
        if len(id_candidates(identifier)) > 1:
            with self._timed("find_one"):
                existing = await collection.find_one(
                    id_filter(identifier), {INTERNAL_ID_FIELD: 1}
                )
            if existing is not None:
                stored_id = existing[INTERNAL_ID_FIELD]

        with self._timed("update_one"):
            await collection.update_one(
                {INTERNAL_ID_FIELD: stored_id}, {"$set": document}, upsert=True
            )

        return identifier

    async def delete(self) -> int:
        """
        Deletes the models matching the query.

        Returns:
            The number of models deleted
        """
        documents = await self._find({INTERNAL_ID_FIELD: 1})
        ids = [document[INTERNAL_ID_FIELD] for document in documents]

        if not ids:
            return 0

        collection = await self._collection()

        if len(ids) == 1:
            with self._timed("delete_one"):
                result = await collection.delete_one({INTERNAL_ID_FIELD: ids[0]})
            return result.deleted_count

        with self._timed("delete_many"):
            result = await collection.delete_many({INTERNAL_ID_FIELD: {"$in": ids}})
        return result.deleted_count

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _compare(operator: str, value: Any) -> Any:
        if operator not in COMPARISON_OPERATORS:
            raise InvalidOperatorError(operator, list(COMPARISON_OPERATORS))

        mongo_operator = COMPARISON_OPERATORS[operator]
        if mongo_operator is None:
            return value
        return {mongo_operator: value}

    @staticmethod
    def _membership_values(key: str, values: list[Any]) -> list[Any]:
        values = sanitize(list(values))
        if key != ID_FIELD:
            return values
        return [candidate for value in values for candidate in id_candidates(value)]

    @staticmethod
    def _value(document: dict[str, Any], key: str) -> Any:
        if key == ID_FIELD:
            return stringify_id(document.get(INTERNAL_ID_FIELD))
        return document.get(key)

    async def _numeric_values(self, key: str) -> list[Any]:
        values = await self.pluck(key)
        if not all(_is_number(value) for value in values):
            raise AggregateTypeError(key, context={"collection": self.collection_name})
        return values

    async def _collection(self) -> Any:
        with query_context(collection=self.collection_name, model=self.model.__name__):
            database = await self._connection.get_connection()
        return database[self.collection_name]

    async def _find(self, projection: dict[str, int] | None = None) -> list[dict[str, Any]]:
        collection = await self._collection()

        if projection:
            cursor = collection.find(self._query, projection)
        else:
            cursor = collection.find(self._query)

        if self._order:
            cursor = cursor.sort(list(self._order.items()))
        if self._offset:
            cursor = cursor.skip(self._offset)
        if self._limit:
            cursor = cursor.limit(self._limit)

        with self._timed("find"):
            return await cursor.to_list(length=None)

    async def _execute(self) -> list[T]:
        documents = await self._find()
        return [self._descriptor.build(document) for document in documents if document]

    def _timed(self, operation: str):
        return timed_operation(
            contextual_logger,
            operation,
            collection=self.collection_name,
            model=self.model.__name__,
        )
