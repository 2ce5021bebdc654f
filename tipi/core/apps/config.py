"""Application configuration payload parsing."""

import json
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from tipi.core.errors import InvalidConfig

ConfigInput = Union[None, str, bytes, Mapping[str, Any]]


class _ConfigLoader(yaml.SafeLoader):
    """SafeLoader that leaves timestamps as plain strings"""


_ConfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def parse_app_config(raw: ConfigInput, app_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Structural parse of an app configuration document

    The document is opaque to the core: it only has to be a mapping.
    Text is parsed as YAML (a superset of JSON); None and empty text give {}.
    Timestamps stay strings so the document can be stored as JSON.

    Raises:
        InvalidConfig: text does not parse, is not a mapping, or holds values
            that cannot be stored as JSON (e.g. !!binary)
    """
    if raw is None:
        return {}

    if isinstance(raw, (str, bytes)):
        if not raw.strip():
            return {}
        try:
            parsed = yaml.load(raw, Loader=_ConfigLoader)
        except yaml.YAMLError as e:
            raise InvalidConfig(f"unparseable document ({e.__class__.__name__})", app_id)
        if parsed is None:
            return {}
    else:
        parsed = raw

    if not isinstance(parsed, Mapping):
        raise InvalidConfig(f"expected a mapping, got {type(parsed).__name__}", app_id)
    parsed = dict(parsed)
    try:
        json.dumps(parsed)
    except (TypeError, ValueError) as e:
        raise InvalidConfig(f"not representable as JSON ({e})", app_id)
    return parsed
