"""
Model descriptors.

A descriptor is everything the query builder needs to know about a model
class: the collection it lives in, the default values of its declared fields
and how to turn a stored document back into an instance. Descriptors are
computed once per class and cached, so the class name to collection name
mapping stays stable for the lifetime of the process.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Generic, TypeVar

import inflection
from pydantic import BaseModel as PydanticModel

from .constants import ID_FIELD, INTERNAL_ID_FIELD
from .utils.mongo import stringify_id

T = TypeVar("T", bound=PydanticModel)


def collection_name_for(class_name: str) -> str:
    """
    Derive the collection name from a class name.

    Example:
        >>> collection_name_for("BlogPost")
        'blog-posts'
    """
    return inflection.pluralize(inflection.dasherize(inflection.underscore(class_name)))


def foreign_key_for(class_name: str) -> str:
    """
    Derive the foreign key other models use to point at `class_name`.

    Example:
        >>> foreign_key_for("Author")
        'author_id'
    """
    return f"{inflection.underscore(class_name)}_id"


@dataclass(frozen=True)
class ModelDescriptor(Generic[T]):
    model: type[T]
    collection_name: str
    foreign_key: str

    def defaults(self) -> dict[str, Any]:
        """Default values of every declared field that has one."""
        return {
            name: field.get_default(call_default_factory=True)
            for name, field in self.model.model_fields.items()
            if not field.is_required()
        }

    def build(self, document: dict[str, Any]) -> T:
        """
        Map a stored document onto a new model instance.

        `_id` becomes the string `id`; every other key is copied verbatim.
        Keys the model does not declare end up in the instance's extras.
        """
        values = {key: value for key, value in document.items() if key != INTERNAL_ID_FIELD}
        if INTERNAL_ID_FIELD in document:
            values[ID_FIELD] = stringify_id(document[INTERNAL_ID_FIELD])
        return self.model.model_construct(**values)


@lru_cache(maxsize=None)
def describe(model: type[T]) -> ModelDescriptor[T]:
    """Return the cached descriptor for `model`."""
    return ModelDescriptor(
        model=model,
        collection_name=collection_name_for(model.__name__),
        foreign_key=foreign_key_for(model.__name__),
    )
