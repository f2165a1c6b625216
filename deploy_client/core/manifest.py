"""
Deployment manifest parsing.

Turns YAML or JSON manifest text into a mapping. Validation is syntactic
only: the control plane owns the manifest schema.

Dependencies: yaml
System role: Local manifest checks before any network call
"""

from typing import Any

import yaml

from deploy_client.core.exceptions import ManifestParseError


class _ManifestLoader(yaml.SafeLoader):
    """SafeLoader that keeps timestamp-like scalars as strings."""


# Manifests are forwarded as JSON; datetime objects would not serialize.
_ManifestLoader.yaml_implicit_resolvers = {
    key: [resolver for resolver in resolvers if resolver[0] != "tag:yaml.org,2002:timestamp"]
    for key, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def parse_manifest(text: str) -> dict[str, Any]:
    """
    Parse manifest text.

    JSON is accepted as the YAML subset it is.

    Args:
        text: YAML or JSON encoded manifest

    Returns:
        dict[str, Any]: Parsed manifest document

    Raises:
        ManifestParseError: If the text does not parse or is not a mapping
    """
    try:
        document = yaml.load(text, Loader=_ManifestLoader)
    except yaml.YAMLError as e:
        raise ManifestParseError(f"Unable to parse manifest: {e}") from e

    if not isinstance(document, dict):
        raise ManifestParseError(
            "Manifest must be a mapping",
            details={"got": type(document).__name__},
        )
    return document
