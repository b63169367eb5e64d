from typing import Literal

from pydantic import BaseModel

ConfigValueType = Literal["string", "number", "bool", "list"]


class EnvConfig(BaseModel):
    """
    One engine specific setting of a client, read from ``<TYPE>_<ENGINE>_<env_key>``.

    Attributes:
        env_key (str): Setting name without the client prefix, e.g. "API_KEY".
        val_type (ConfigValueType): How the raw value is parsed.
        default: Value used when the variable is unset. None marks the setting as required.
    """

    env_key: str
    val_type: ConfigValueType = "string"
    default: str | int | float | bool | list | None = None
