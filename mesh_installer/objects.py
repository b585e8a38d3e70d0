# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */


"""Resource objects, manifest parsing, and manifest serialization."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

import yaml

from mesh_installer.constants import KIND_LIST
from mesh_installer.errors import ManifestParseError


@dataclass(eq=False)
class ResourceObject:
    """A single cluster resource parsed from a manifest.

    Wraps the raw manifest document. Only metadata is read or written;
    the rest of the body is carried through untouched.

    Attributes:
        body: The manifest document as a dictionary.
    """

    body: dict = field(default_factory=dict)

    @property
    def api_version(self) -> str:
        return self.body.get("apiVersion", "")

    @property
    def api_group(self) -> str:
        """API group, empty for the core group (``v1``)."""
        group, sep, _ = self.api_version.rpartition("/")
        return group if sep else ""

    @property
    def kind(self) -> str:
        return self.body.get("kind", "")

    @property
    def metadata(self) -> dict:
        return self.body.setdefault("metadata", {})

    @property
    def name(self) -> str:
        return self.metadata.get("name", "")

    @property
    def namespace(self) -> str:
        return self.metadata.get("namespace") or ""

    @property
    def labels(self) -> dict[str, str]:
        return dict(self.metadata.get("labels") or {})

    def add_labels(self, labels: dict[str, str]) -> None:
        """Merge *labels* into the object's metadata labels."""
        current = self.metadata.get("labels") or {}
        current.update(labels)
        self.metadata["labels"] = current

    @property
    def key(self) -> str:
        """Human-readable identifier, e.g. ``Deployment/istio-system/pilot``."""
        if self.namespace:
            return f"{self.kind}/{self.namespace}/{self.name}"
        return f"{self.kind}/{self.name}"

    def __repr__(self) -> str:
        return f"ResourceObject({self.key})"


def _expand(doc: dict) -> list[dict]:
    if doc.get("kind") == KIND_LIST:
        items = doc.get("items") or []
        if not isinstance(items, list):
            raise ManifestParseError("List object has a non-list 'items' field")
        return [item for sub in items for item in _expand(sub)]
    return [doc]


def parse_manifest(text: str) -> list[ResourceObject]:
    """Parse multi-document YAML manifest text into resource objects.

    Empty documents are skipped and ``kind: List`` wrappers are flattened.

    Args:
        text: Raw manifest text.

    Returns:
        Resource objects in document order.

    Raises:
        ManifestParseError: If the YAML is malformed or a document is not a
            Kubernetes object.
    """
    try:
        docs = list(yaml.safe_load_all(text or ""))
    except yaml.YAMLError as err:
        raise ManifestParseError(f"invalid manifest YAML: {err}") from err

    objects: list[ResourceObject] = []
    for idx, doc in enumerate(docs):
        if doc is None:
            continue
        if not isinstance(doc, dict):
            raise ManifestParseError(f"document {idx} is not a mapping")
        for item in _expand(doc):
            if not isinstance(item, dict):
                raise ManifestParseError(f"document {idx} contains a non-mapping item")
            if not item.get("kind"):
                raise ManifestParseError(f"document {idx} has no kind")
            if not (item.get("metadata") or {}).get("name"):
                raise ManifestParseError(f"document {idx} ({item['kind']}) has no metadata.name")
            objects.append(ResourceObject(body=copy.deepcopy(item)))
    return objects


def to_manifest(objects: list[ResourceObject]) -> str:
    """Serialize resource objects back into multi-document YAML."""
    if not objects:
        return ""
    return yaml.safe_dump_all(
        [o.body for o in objects], default_flow_style=False, sort_keys=False,
    )


def parse_list_items(text: str) -> list[dict]:
    """Return the items of a ``kubectl get -o yaml`` List document.

    Args:
        text: YAML output of ``kubectl get``.

    Returns:
        The raw item dictionaries.

    Raises:
        ManifestParseError: If the output is not a List with an items array.
    """
    try:
        doc = yaml.safe_load(text or "")
    except yaml.YAMLError as err:
        raise ManifestParseError(f"invalid kubectl get output: {err}") from err
    if not isinstance(doc, dict) or doc.get("kind") != KIND_LIST:
        raise ManifestParseError("`kubectl get` returned a yaml whose kind is not List")
    if "items" not in doc:
        raise ManifestParseError("`kubectl get` returned a yaml without 'items' in the root")
    items = doc["items"]
    if items is None:
        return []
    if not isinstance(items, list):
        raise ManifestParseError("`kubectl get` returned a yaml with a non-list 'items'")
    return items
