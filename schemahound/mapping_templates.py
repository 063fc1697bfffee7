"""Index of mapping-template files written next to the compiled schema.

The compiler writes one file per resolver direction, named
``{typeName}.{fieldName}.{req|res}``. The normalizer only names these
files; this index turns names back into paths and groups them per
resolver.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Collection, Dict, List, Mapping, Optional, Union

from .constants import (
    DEFAULT_ROOT_TYPE_NAMES,
    REQUEST_TEMPLATE_SUFFIX,
    RESPONSE_TEMPLATE_SUFFIX,
    TEMPLATE_EXTENSION,
)
from .models import Resolver, TemplateRef

logger = logging.getLogger(__name__)


@dataclass
class ResolverTemplates:
    type_name: str
    field_name: str
    request_path: Optional[Path] = None
    response_path: Optional[Path] = None
    table_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type_name": self.type_name,
            "field_name": self.field_name,
            "request_path": str(self.request_path) if self.request_path else None,
            "response_path": str(self.response_path) if self.response_path else None,
            "table_name": self.table_name,
        }


@dataclass
class TemplateGroups:
    root: Dict[str, ResolverTemplates] = field(default_factory=dict)
    http: Dict[str, ResolverTemplates] = field(default_factory=dict)
    secondary_index: Dict[str, ResolverTemplates] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": {k: v.to_dict() for k, v in self.root.items()},
            "http": {k: v.to_dict() for k, v in self.http.items()},
            "secondary_index": {k: v.to_dict() for k, v in self.secondary_index.items()},
        }


class MappingTemplateIndex:
    """Lookup of template files in a resolvers directory.

    Usage:
        index = MappingTemplateIndex(Path("appsync/resolvers"))
        path = index.resolve(stage.request_template)
        groups = index.group(bundle.http_resolvers)
    """

    def __init__(
        self,
        resolvers_dir: Union[str, Path],
        root_type_names: Collection[str] = DEFAULT_ROOT_TYPE_NAMES,
        extension: str = TEMPLATE_EXTENSION,
    ):
        self.resolvers_dir = Path(resolvers_dir)
        self.root_type_names = frozenset(root_type_names)
        self.extension = extension
        self._files: Optional[Dict[str, Path]] = None

    @property
    def files(self) -> Dict[str, Path]:
        """Bare file name -> path, in sorted order. Scanned once."""
        if self._files is None:
            self._files = {}
            if self.resolvers_dir.is_dir():
                for path in sorted(self.resolvers_dir.iterdir()):
                    if path.is_file():
                        self._files[self._bare_name(path.name)] = path
            else:
                logger.warning(f"Resolvers directory {self.resolvers_dir} does not exist")
        return self._files

    def _bare_name(self, file_name: str) -> str:
        if self.extension and file_name.endswith(self.extension):
            return file_name[: -len(self.extension)]
        return file_name

    def resolve(self, ref: Union[TemplateRef, str]) -> Path:
        """Path of a file template reference or bare file name."""
        if isinstance(ref, TemplateRef):
            if not ref.is_file:
                raise ValueError("Inline templates have no file")
            name = ref.file_name
        else:
            name = self._bare_name(ref)
        try:
            return self.files[name]
        except KeyError:
            raise FileNotFoundError(f"No mapping template '{name}' in {self.resolvers_dir}") from None

    def group(self, http_resolvers: Optional[Mapping[str, List[Resolver]]] = None) -> TemplateGroups:
        """Group template files per resolver.

        Root-type files and files of known HTTP resolvers are keyed by
        ``typeName + fieldName``; everything else is treated as a
        secondary-index resolver whose table is the capitalised field name.
        """
        http_fields = {
            (r.type_name, r.field_name) for resolvers in (http_resolvers or {}).values() for r in resolvers
        }
        groups = TemplateGroups()

        for name, path in self.files.items():
            parts = name.split(".")
            if len(parts) < 3:
                logger.debug(f"Skipping template file {path.name}: not typeName.fieldName.kind")
                continue
            type_name, field_name, template_type = parts[0], parts[1], parts[-1]
            if template_type not in (REQUEST_TEMPLATE_SUFFIX, RESPONSE_TEMPLATE_SUFFIX):
                logger.debug(f"Skipping template file {path.name}: unknown template type {template_type}")
                continue

            key = f"{type_name}{field_name}"
            if type_name in self.root_type_names:
                bucket = groups.root
            elif (type_name, field_name) in http_fields:
                bucket = groups.http
            else:
                bucket = groups.secondary_index

            entry = bucket.get(key)
            if entry is None:
                entry = ResolverTemplates(type_name=type_name, field_name=field_name)
                if bucket is groups.secondary_index:
                    entry.table_name = field_name[:1].upper() + field_name[1:]
                bucket[key] = entry

            if template_type == REQUEST_TEMPLATE_SUFFIX:
                entry.request_path = path
            else:
                entry.response_path = path

        return groups
