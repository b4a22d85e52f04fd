"""Base model for records exchanged between server, workers and clients."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model, populated by field name or by its camelCase alias."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)
