import uuid

from ..core.model import NoteId
from ..core.ports import IdGenerator


class UuidGenerator(IdGenerator):
    def new_id(self) -> NoteId:
        return uuid.uuid4()
