"""Model schemas and change-tracking instances.

Usage:
    from db_mapper.model import Attribute, Types, define_model
"""

from db_mapper.model.define import define_model
from db_mapper.model.instance import ModelInstance
from db_mapper.model.schema import HOOK_NAMES, Attribute, ModelSchema, Serial, Types

__all__ = [
    "define_model",
    "ModelInstance",
    "ModelSchema",
    "Attribute",
    "Types",
    "Serial",
    "HOOK_NAMES",
]
