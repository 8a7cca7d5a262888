"""
Class group: referenced by name (not id) from users and target-scoped entities.
Deleting one leaves those name references dangling.
"""
from classpoll.models.types import DomainModel


class ClassGroup(DomainModel):
    id: str
    name: str
